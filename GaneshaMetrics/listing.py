# SPDX-License-Identifier: LGPL-3.0-or-later
#
# listing.py - ShowExports / ShowClients replies.
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
#
# The listings are what every other call hangs off, so unlike the stats
# replies they are decoded strictly: anything unexpected is a ProtocolError.

from GaneshaMetrics import bus
from GaneshaMetrics.decoder import (as_bool, as_identifier, as_sequence,
                                    as_string, as_timespec)
from GaneshaMetrics.errors import ProtocolError
from GaneshaMetrics.stats_types import Client, Export

# Positional order of the protocol flags in a listing entry
FLAG_FIELDS = ('HasNFSv3',
               'HasMNT',
               'HasNLM4',
               'HasRQUOTA',
               'HasNFSv40',
               'HasNFSv41',
               'HasNFSv42',
               'Has9P')

# Protocol names used when the flags come as an array of (name, enabled)
PROTOCOL_FIELDS = {'NFSv3': 'HasNFSv3',
                   'MNT': 'HasMNT',
                   'NLMv4': 'HasNLM4',
                   'RQUOTA': 'HasRQUOTA',
                   'NFSv40': 'HasNFSv40',
                   'NFSv41': 'HasNFSv41',
                   'NFSv42': 'HasNFSv42',
                   '9P': 'Has9P'}


def _protocol_pairs(method, pairs):
    flags = dict.fromkeys(FLAG_FIELDS, False)
    for pair in pairs:
        pair, ok = as_sequence(pair)
        if not ok or len(pair) != 2:
            raise ProtocolError(method, "bad protocol entry")
        name, has_name = as_string(pair[0])
        enabled, has_enabled = as_bool(pair[1])
        if not (has_name and has_enabled):
            raise ProtocolError(method, "bad protocol entry")
        if name in PROTOCOL_FIELDS:
            flags[PROTOCOL_FIELDS[name]] = enabled
    return flags


def _entity_fields(method, entry, start):
    '''
    Decode the protocol flags and last-activity time found at entry[start:].
    '''
    if len(entry) <= start:
        raise ProtocolError(method, "short entry")
    pairs, is_list = as_sequence(entry[start])
    if is_list:
        flags = _protocol_pairs(method, pairs)
        last = start + 1
    else:
        if len(entry) < start + len(FLAG_FIELDS) + 1:
            raise ProtocolError(method, "short entry")
        flags = {}
        for i, name in enumerate(FLAG_FIELDS):
            flag, ok = as_bool(entry[start + i])
            if not ok:
                raise ProtocolError(method, "bad %s flag" % name)
            flags[name] = flag
        last = start + len(FLAG_FIELDS)

    if len(entry) <= last:
        raise ProtocolError(method, "missing last activity time")
    lasttime, ok = as_timespec(entry[last])
    if not ok:
        raise ProtocolError(method, "bad last activity time")
    flags['LastTime'] = lasttime
    return flags


def _listing(method, reply):
    if len(reply) < 2:
        raise ProtocolError(method, "expected 2 values, got %d" % len(reply))
    ts_, ok = as_timespec(reply[0])
    if not ok:
        raise ProtocolError(method, "bad timestamp")
    entries, ok = as_sequence(reply[1])
    if not ok:
        raise ProtocolError(method, "entries are not an array")
    decoded = []
    for entry in entries:
        entry, ok = as_sequence(entry)
        if not ok or len(entry) < 2:
            raise ProtocolError(method, "bad entry")
        decoded.append(entry)
    return ts_, decoded


def decode_exports(reply):
    method = "ShowExports"
    exports = []
    ts_, entries = _listing(method, reply)
    for ex in entries:
        exportid, ok = as_identifier(ex[0])
        if not ok:
            raise ProtocolError(method, "bad export id")
        path, ok = as_string(ex[1])
        if not ok:
            raise ProtocolError(method, "bad export path")
        exports.append(Export(ExportID=exportid,
                              ExportPath=path,
                              **_entity_fields(method, ex, 2)))
    return ts_, exports


def decode_clients(reply):
    method = "ShowClients"
    clients = []
    ts_, entries = _listing(method, reply)
    for cl_ in entries:
        addr, ok = as_string(cl_[0])
        if not ok:
            raise ProtocolError(method, "bad client address")
        clients.append(Client(ClientIP=addr,
                              **_entity_fields(method, cl_, 1)))
    return ts_, clients


# list of all exports
def list_exports(conn):
    reply = conn.invoke(bus.EXPORT_INTERFACE, bus.EXPORT_MGR, "ShowExports")
    return decode_exports(reply)


# list of all clients
def list_clients(conn):
    reply = conn.invoke(bus.CLIENT_INTERFACE, bus.CLIENT_MGR, "ShowClients")
    return decode_clients(reply)
