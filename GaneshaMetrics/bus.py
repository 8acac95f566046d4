# SPDX-License-Identifier: LGPL-3.0-or-later
#
# bus.py - private system bus connection to ganesha.nfsd.
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

import dbus
import dbus.bus

from GaneshaMetrics.errors import BusConnectionError, CallError

SERVICE = 'org.ganesha.nfsd'

EXPORT_INTERFACE = '/org/ganesha/nfsd/ExportMgr'
EXPORT_MGR = 'org.ganesha.nfsd.exportmgr'
EXPORT_STATS = 'org.ganesha.nfsd.exportstats'

CLIENT_INTERFACE = '/org/ganesha/nfsd/ClientMgr'
CLIENT_MGR = 'org.ganesha.nfsd.clientmgr'
CLIENT_STATS = 'org.ganesha.nfsd.clientstats'


class BusConnection():
    '''
    One private connection to the system bus, used for a single scrape and
    then closed. Authentication (EXTERNAL, with our uid) and the Hello
    handshake are done by libdbus while connecting.
    '''
    def __init__(self, bus, timeout=None):
        self.bus = bus
        self.timeout = timeout
        self.objects = {}

    @classmethod
    def open(cls, address=None, timeout=None):
        try:
            if address:
                bus = dbus.bus.BusConnection(address)
            else:
                bus = dbus.SystemBus(private=True)
        except dbus.exceptions.DBusException as ex:
            raise BusConnectionError(str(ex)) from ex
        return cls(bus, timeout)

    def close(self):
        if self.bus is not None:
            self.bus.close()
            self.bus = None
            self.objects = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def get_object(self, path):
        if self.bus is None:
            raise BusConnectionError("connection is closed")
        if path not in self.objects:
            try:
                self.objects[path] = self.bus.get_object(SERVICE, path,
                                                         introspect=False)
            except dbus.exceptions.DBusException as ex:
                raise BusConnectionError(str(ex)) from ex
        return self.objects[path]

    def invoke(self, path, interface, method, *args):
        '''
        Call interface.method on the object at path and return the reply
        as a tuple of out arguments.
        '''
        dbusobj = self.get_object(path)
        dbus_method = dbusobj.get_dbus_method(method, interface)
        kwargs = {}
        if self.timeout is not None:
            kwargs['timeout'] = self.timeout
        try:
            reply = dbus_method(*args, **kwargs)
        except dbus.exceptions.DBusException as ex:
            raise CallError(interface + "." + method, str(ex)) from ex

        logging.debug("%s.%s%s replied %d values", interface, method,
                      tuple(args), len(reply) if isinstance(reply, tuple) else 1)
        # a single out argument comes back bare, a struct included
        if not isinstance(reply, tuple) or isinstance(reply, dbus.Struct):
            reply = (reply,)
        return reply


def opener(address=None, timeout=None):
    '''
    Connection factory handed to the collectors.
    '''
    def open_connection():
        return BusConnection.open(address, timeout)
    return open_connection
