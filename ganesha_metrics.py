#!/usr/bin/python3
# SPDX-License-Identifier: LGPL-3.0-or-later
#
# Copyright (C) 2024 nfs-ganesha-metrics contributors
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program.  If not, see <http://www.gnu.org/licenses/>.
#
# This command serves the statistics ganesha publishes over DBus as
# Prometheus metrics:
#
# ganesha_metrics [--port 8080] [--path /metrics] [--bus-address <addr>]
#
# ganesha_metrics --help
#       To get detailed help
#
import logging
import os
import platform
import signal
import sys

from GaneshaMetrics import listing
from GaneshaMetrics.bus import BusConnection
from GaneshaMetrics.config import parse_settings, setup_logging
from GaneshaMetrics.errors import BusConnectionError, CallError, ProtocolError
from GaneshaMetrics.exporter import MetricsExporter
from GaneshaMetrics.versions import make_versions


def start(settings, versions):
    logging.info("Initializing ganesha_metrics: program=%s python=%s "
                 "version=%s commitid=%s", sys.argv[0],
                 platform.python_version(), versions.version,
                 versions.commit_id)
    logging.info("IDs: uid=%d gid=%d", os.getuid(), os.getgid())
    logging.info("Env: DBUS_SYSTEM_BUS_ADDRESS=%s DBUS_SESSION_BUS_ADDRESS=%s",
                 os.environ.get("DBUS_SYSTEM_BUS_ADDRESS", ""),
                 os.environ.get("DBUS_SESSION_BUS_ADDRESS", ""))


# Minimal check that ganesha answers on the bus. Failing here is not fatal:
# the daemon may come up later and every scrape reconnects.
def poke(settings):
    try:
        with BusConnection.open(settings.bus_address,
                                settings.dbus_timeout) as conn:
            _, exports = listing.list_exports(conn)
            _, clients = listing.list_clients(conn)
    except BusConnectionError as ex:
        logging.error("Can't talk to the system bus: %s", ex)
        return False
    except (CallError, ProtocolError) as ex:
        logging.error("Can't talk to ganesha service on d-bus. "
                      "Looks like Ganesha is down: %s", ex)
        return False
    logging.info("ganesha has %d exports and %d clients",
                 len(exports), len(clients))
    return True


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    settings = parse_settings(argv)
    setup_logging(settings)
    versions = make_versions(settings.commit_id)

    start(settings, versions)
    poke(settings)

    exporter = MetricsExporter(settings, versions)
    try:
        exporter.register()
        exporter.listen()
    except (ValueError, OSError) as ex:
        logging.error("RunMetricsExporter: %s", ex)
        return 1

    def stop(signum, frame):
        logging.info("signal %d, shutting down", signum)
        exporter.shutdown()

    signal.signal(signal.SIGTERM, stop)
    signal.signal(signal.SIGINT, stop)
    exporter.serve()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
