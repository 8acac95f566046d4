# SPDX-License-Identifier: LGPL-3.0-or-later
#
# config.py - command line and environment settings.
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
#-*- coding: utf-8 -*-

import argparse
import logging
import os
from collections import namedtuple

DefaultMetricsPort = 8080
DefaultMetricsPath = "/metrics"

FORMAT = "%(asctime)s %(levelname)s [%(filename)s:%(lineno)d-%(funcName)s()] %(message)s"

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

Settings = namedtuple('Settings',
                      ['port',
                       'address',
                       'metrics_path',
                       'bus_address',
                       'dbus_timeout',
                       'commit_id',
                       'log_level'])


def port_number(value):
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("'%s' is not a port number" % value)
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError("port %d out of range" % port)
    return port


def metrics_path(value):
    if not value.startswith("/"):
        raise argparse.ArgumentTypeError("path must start with '/'")
    return value


def timeout_seconds(value):
    try:
        timeout = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError("'%s' is not a number" % value)
    if timeout <= 0:
        raise argparse.ArgumentTypeError("timeout must be positive")
    return timeout


def log_level(value):
    level = value.upper()
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError("unknown log level '%s'" % value)
    return level


def build_parser(environ=None):
    env = os.environ if environ is None else environ
    parser = argparse.ArgumentParser(
        description="Export NFS-Ganesha DBus stats as Prometheus metrics")
    parser.add_argument("-p", "--port", type=port_number,
                        default=env.get("GANESHA_METRICS_PORT",
                                        DefaultMetricsPort),
                        help="TCP port to serve metrics on (Default: 8080)")
    parser.add_argument("-a", "--address",
                        default=env.get("GANESHA_METRICS_ADDRESS", ""),
                        help="address to listen on (Default: all)")
    parser.add_argument("--path", type=metrics_path, dest="metrics_path",
                        default=env.get("GANESHA_METRICS_PATH",
                                        DefaultMetricsPath),
                        help="HTTP path of the metrics (Default: /metrics)")
    parser.add_argument("--bus-address",
                        default=env.get("GANESHA_METRICS_BUS_ADDRESS"),
                        help="DBus address to use instead of the system bus")
    parser.add_argument("--dbus-timeout", type=timeout_seconds,
                        default=env.get("GANESHA_METRICS_DBUS_TIMEOUT"),
                        help="seconds to wait for each DBus reply "
                             "(Default: libdbus default)")
    parser.add_argument("--commit-id",
                        default=env.get("GANESHA_METRICS_COMMIT_ID"),
                        help="source revision reported in the status metric")
    parser.add_argument("--log-level", type=log_level,
                        default=env.get("GANESHA_METRICS_LOG_LEVEL", "INFO"),
                        help="one of %s (Default: INFO)" % ", ".join(LOG_LEVELS))
    return parser


def parse_settings(argv, environ=None):
    # argparse runs type= on string defaults too, so environment values are
    # validated like their command line counterparts
    args = build_parser(environ).parse_args(argv)
    return Settings(port=args.port,
                    address=args.address,
                    metrics_path=args.metrics_path,
                    bus_address=args.bus_address,
                    dbus_timeout=args.dbus_timeout,
                    commit_id=args.commit_id,
                    log_level=args.log_level)


def setup_logging(settings):
    logging.basicConfig(format=FORMAT,
                        level=getattr(logging, settings.log_level))
