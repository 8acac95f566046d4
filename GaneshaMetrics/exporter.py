# SPDX-License-Identifier: LGPL-3.0-or-later
#
# exporter.py - HTTP endpoint serving the registered collectors.
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

import logging
import threading
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

from GaneshaMetrics import bus
from GaneshaMetrics.collectors import (ClientsCollector, ExportsCollector,
                                       VersionsCollector)


class _RequestHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        logging.debug("%s - " + format, self.address_string(), *args)


class MetricsExporter():
    '''
    Owns the collector registry and the HTTP server. Every scrape runs the
    collectors in the request thread, each opening its own DBus connection.
    '''
    def __init__(self, settings, versions, opener=None):
        self.settings = settings
        self.versions = versions
        if opener is None:
            opener = bus.opener(settings.bus_address, settings.dbus_timeout)
        self.opener = opener
        self.registry = CollectorRegistry()
        self.server = None

    def register(self):
        logging.info("register collectors")
        cols = [VersionsCollector(self.versions),
                ExportsCollector(self.opener),
                ClientsCollector(self.opener)]
        for col in cols:
            try:
                self.registry.register(col)
            except ValueError:
                logging.error("failed to register collector %s",
                              col.__class__.__name__)
                raise

    def app(self):
        metrics_app = make_wsgi_app(self.registry)
        path = self.settings.metrics_path

        def dispatch(environ, start_response):
            if environ.get('PATH_INFO', '') != path:
                start_response('404 Not Found',
                               [('Content-Type', 'text/plain; charset=utf-8')])
                return [b'Not Found\n']
            return metrics_app(environ, start_response)
        return dispatch

    def listen(self):
        addr = self.settings.address
        port = self.settings.port
        logging.info("serve metrics on %s:%d%s", addr or "*", port,
                     self.settings.metrics_path)
        try:
            self.server = make_server(addr, port, self.app(),
                                      ThreadingWSGIServer,
                                      handler_class=_RequestHandler)
        except OSError:
            logging.error("failed to listen on %s:%d", addr or "*", port)
            raise
        return self.server

    def serve(self):
        if self.server is None:
            self.listen()
        try:
            self.server.serve_forever()
        finally:
            self.server.server_close()

    def shutdown(self):
        # serve_forever() must be stopped from another thread
        if self.server is not None:
            threading.Thread(target=self.server.shutdown, daemon=True).start()
