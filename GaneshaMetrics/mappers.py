# SPDX-License-Identifier: LGPL-3.0-or-later
#
# mappers.py - per export and per client stats replies.
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
# Every stats reply starts with (status, error, timestamp).  The payload
# after it is only meaningful when status is true; when it is false the
# daemon has nothing for that entity and we report it as absent.

import dbus

from GaneshaMetrics import bus
from GaneshaMetrics.decoder import (Kind, ReplyCursor, as_bool, as_sequence,
                                    as_string, as_timespec, as_uint64, kind_of)
from GaneshaMetrics.errors import ProtocolError
from GaneshaMetrics.stats_types import (IO_CATEGORIES, NFS_PROTOCOLS,
                                        ClientIOs, ClientIOStats,
                                        IOCategoryBlock, IOCounters,
                                        OperationCounters, OperationsStats,
                                        ReplyEnvelope, Timespec)

UINT16_MAX = 0xFFFF

# Key names of the GetTotalOPS/GetGlobalOPS key/value array
OPS_FIELDS = {'NFSv3': 'nfsv3',
              'NFSv40': 'nfsv40',
              'NFSv41': 'nfsv41',
              'NFSv42': 'nfsv42',
              'MNTv1': 'mntv1',
              'MNTv3': 'mntv3',
              'NLMv4': 'nlmv4',
              'RQUOTA': 'rquota',
              '9P': 'plan9',
              'Plan9': 'plan9'}


def decode_operation_counters(raw):
    '''
    Scan a flat [key, value, key, value, ...] array into OperationCounters.

    Pairs whose key is not a known protocol, or whose key or value has the
    wrong type, are skipped. A repeated key overwrites the earlier value.
    '''
    values, ok = as_sequence(raw)
    if not ok:
        return OperationCounters()

    counters = {}
    for i in range(1, len(values), 2):
        key, has_key = as_string(values[i - 1])
        val, has_val = as_uint64(values[i])
        if has_key and has_val and key in OPS_FIELDS:
            counters[OPS_FIELDS[key]] = val
    return OperationCounters(**counters)


def decode_io_counters(raw):
    '''
    Decode one (total, errors, transferred) struct.

    Short structs and mistyped fields leave the matching counters at zero.
    '''
    values, ok = as_sequence(raw)
    if not ok:
        return IOCounters()

    fields = values[:len(IOCounters._fields)]
    return IOCounters(*[as_uint64(v)[0] for v in fields])


def _is_counter_struct(value):
    values, ok = as_sequence(value)
    if not ok:
        return False
    return len(values) == 0 or kind_of(values[0]) is not Kind.SEQUENCE


def _block(structs):
    categories = {}
    for name, raw in zip(IO_CATEGORIES, structs):
        categories[name] = decode_io_counters(raw)
    return IOCategoryBlock(**categories)


def decode_io_block(cursor):
    '''
    Decode the read/write/other/layout counters following a set flag.

    The block is either a single array of category structs, which takes one
    position, or (as ganesha sends it) the category structs laid out one
    after the other, stopping at the next flag. In the latter case the
    cursor moves past exactly the structs consumed.
    '''
    value, ok = cursor.peek()
    if not ok:
        return IOCategoryBlock()

    if not _is_counter_struct(value):
        nested, is_seq = as_sequence(value)
        if not is_seq:
            return IOCategoryBlock()
        cursor.advance()
        return _block(nested[:len(IO_CATEGORIES)])

    structs = []
    while len(structs) < len(IO_CATEGORIES):
        value, ok = cursor.peek()
        if not ok or not _is_counter_struct(value):
            break
        structs.append(value)
        cursor.advance()
    return _block(structs)


def decode_client_io_stats(raw):
    '''
    Decode the GetClientIOops payload: for each of NFSv3, NFSv4.0, NFSv4.1
    and NFSv4.2 a boolean flag, followed by a block when the flag is set.

    A missing or mistyped flag ends decoding; protocols not reached stay at
    zero. This never fails.
    '''
    values, ok = as_sequence(raw)
    if not ok:
        return ClientIOStats()
    return read_client_io_stats(ReplyCursor(values))


def read_client_io_stats(cursor):
    '''
    Same as decode_client_io_stats, reading from an existing cursor. The
    cursor is left just past the last flag or block consumed.
    '''
    blocks = {}
    available = []
    for proto in NFS_PROTOCOLS:
        if cursor.exhausted():
            break
        flag, ok = cursor.read_flag()
        if not ok:
            break
        if flag:
            blocks[proto] = decode_io_block(cursor)
            available.append(proto)
    return ClientIOStats(available=tuple(available), **blocks)


def decode_envelope(method, reply):
    if len(reply) < 2:
        raise ProtocolError(method, "illegal reply")
    status, ok = as_bool(reply[0])
    if not ok:
        raise ProtocolError(method, "illegal reply status")
    error, ok = as_string(reply[1])
    if not ok:
        raise ProtocolError(method, "illegal reply errstr")
    timestamp = Timespec()
    if len(reply) > 2:
        timestamp, _ = as_timespec(reply[2])
    return ReplyEnvelope(status=status, error=error, timestamp=timestamp)


def decode_operations_reply(method, reply):
    envelope = decode_envelope(method, reply)
    if not envelope.status:
        return OperationsStats(envelope=envelope), False

    if len(reply) < 4:
        raise ProtocolError(method, "protocol error")
    if not (as_sequence(reply[2])[1] and as_sequence(reply[3])[1]):
        raise ProtocolError(method, "protocol error")
    return OperationsStats(envelope=envelope,
                           ops=decode_operation_counters(reply[3])), True


def decode_client_io_reply(method, reply):
    envelope = decode_envelope(method, reply)
    if not envelope.status:
        return ClientIOs(envelope=envelope), False

    if len(reply) < 3:
        raise ProtocolError(method, "protocol error")
    return ClientIOs(envelope=envelope,
                     io=decode_client_io_stats(reply[3:])), True


def _export_arg(method, export_id):
    if not 0 <= export_id <= UINT16_MAX:
        raise ProtocolError(method, "export id %d out of range" % export_id)
    return dbus.UInt16(export_id)


# NFSv3/NFSv4/NLM/MNT/QUOTA stats totalled for a single export
def get_total_ops(conn, export_id):
    method = "GetTotalOPS"
    reply = conn.invoke(bus.EXPORT_INTERFACE, bus.EXPORT_STATS, method,
                        _export_arg(method, export_id))
    return decode_operations_reply(method, reply)


# NFSv3/NFSv4/NLM/MNT/QUOTA stats totalled over all exports. Current daemons
# take no argument; an export id is only sent when one is given.
def get_global_ops(conn, export_id=None):
    method = "GetGlobalOPS"
    args = ()
    if export_id is not None:
        args = (_export_arg(method, export_id),)
    reply = conn.invoke(bus.EXPORT_INTERFACE, bus.EXPORT_STATS, method, *args)
    return decode_operations_reply(method, reply)


# read/write/other/layout I/O stats of a single client address
def get_client_io_counters(conn, address):
    method = "GetClientIOops"
    reply = conn.invoke(bus.CLIENT_INTERFACE, bus.CLIENT_STATS, method,
                        dbus.String(address))
    return decode_client_io_reply(method, reply)
