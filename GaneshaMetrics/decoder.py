# SPDX-License-Identifier: LGPL-3.0-or-later
#
# decoder.py - defensive accessors for untyped DBus reply values.
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
# Replies from ganesha carry no schema we can enforce: every element may be
# of any DBus type, and a newer daemon may add or drop fields.  Nothing in
# here raises; every accessor returns a (value, present) pair and callers
# fall back to the zero value when present is False.

import enum

import dbus

from GaneshaMetrics.stats_types import Timespec

UINT64_MAX = 2**64 - 1


class Kind(enum.Enum):
    STRING = "string"
    UINT64 = "uint64"
    INT64 = "int64"
    BOOL = "bool"
    SEQUENCE = "sequence"
    UNKNOWN = "unknown"


# Signed wire types; never counters, but some daemons send ids as these
SIGNED_TYPES = (dbus.Int16, dbus.Int32, dbus.Int64)


def kind_of(v):
    # dbus.Boolean is an int subclass and bool is too, so test it first
    if isinstance(v, (bool, dbus.Boolean)):
        return Kind.BOOL
    elif isinstance(v, SIGNED_TYPES):
        return Kind.INT64
    elif isinstance(v, int):
        if 0 <= v <= UINT64_MAX:
            return Kind.UINT64
        return Kind.UNKNOWN
    elif isinstance(v, str):
        return Kind.STRING
    elif isinstance(v, (list, tuple)):
        return Kind.SEQUENCE
    return Kind.UNKNOWN


def as_string(v):
    if kind_of(v) is Kind.STRING:
        return str(v), True
    return "", False


def as_uint64(v):
    if kind_of(v) is Kind.UINT64:
        return int(v), True
    return 0, False


def as_identifier(v):
    '''
    Non-negative integer of any wire width or signedness, for entity ids.
    '''
    if kind_of(v) in (Kind.UINT64, Kind.INT64) and v >= 0:
        return int(v), True
    return 0, False


def as_bool(v):
    if kind_of(v) is Kind.BOOL:
        return bool(v), True
    return False, False


def as_sequence(v):
    if kind_of(v) is Kind.SEQUENCE:
        return v, True
    return (), False


def as_timespec(v):
    '''
    Decode a (seconds, nanoseconds) struct.
    '''
    seq, ok = as_sequence(v)
    if not ok or len(seq) != 2:
        return Timespec(), False
    seconds, has_seconds = as_uint64(seq[0])
    nsecs, has_nsecs = as_uint64(seq[1])
    if not (has_seconds and has_nsecs):
        return Timespec(), False
    return Timespec(seconds, nsecs), True


class ReplyCursor():
    '''
    Forward-only reader over the positional fields of a reply.
    '''
    def __init__(self, values):
        self.values = values
        self.pos = 0

    def exhausted(self):
        return self.pos >= len(self.values)

    def remaining(self):
        return max(len(self.values) - self.pos, 0)

    def peek(self, offset=0):
        idx = self.pos + offset
        if idx < 0 or idx >= len(self.values):
            return None, False
        return self.values[idx], True

    def advance(self, count=1):
        self.pos = min(self.pos + count, len(self.values))

    # Reads one gate flag. The cursor moves past the element even when it
    # is not a boolean, so callers must stop on present == False.
    def read_flag(self):
        value, ok = self.peek()
        if not ok:
            return False, False
        self.advance()
        return as_bool(value)
