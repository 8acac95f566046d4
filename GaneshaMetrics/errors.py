# SPDX-License-Identifier: LGPL-3.0-or-later
#
# errors.py - exceptions raised while talking to ganesha over DBus.
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


class MetricsError(Exception):
    def __init__(self, error):
        super().__init__(error)
        self.error = error


class BusConnectionError(MetricsError):
    '''
    The system bus could not be reached or refused us. Fatal to a scrape.
    '''


class CallError(MetricsError):
    '''
    A method call was dispatched but failed. Fatal to that call only.
    '''
    def __init__(self, method, error):
        super().__init__("%s: %s" % (method, error))
        self.method = method


class ProtocolError(MetricsError):
    '''
    A reply does not have the shape ganesha is known to send.
    '''
    def __init__(self, method, error):
        super().__init__("%s: %s" % (method, error))
        self.method = method
