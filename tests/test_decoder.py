import dbus
import pytest

from GaneshaMetrics.decoder import (Kind, ReplyCursor, as_bool, as_identifier,
                                    as_sequence, as_string, as_timespec,
                                    as_uint64, kind_of)
from GaneshaMetrics.stats_types import Timespec


@pytest.mark.parametrize("value, kind", [
    (dbus.Boolean(True), Kind.BOOL),
    (False, Kind.BOOL),
    (dbus.UInt64(2**64 - 1), Kind.UINT64),
    (dbus.UInt16(7), Kind.UINT64),
    (42, Kind.UINT64),
    (dbus.Int64(-1), Kind.INT64),
    (dbus.Int32(5), Kind.INT64),
    (dbus.Int16(5), Kind.INT64),
    (-1, Kind.UNKNOWN),
    (2**64, Kind.UNKNOWN),
    (dbus.String("NFSv3"), Kind.STRING),
    ("x", Kind.STRING),
    (dbus.Array([1, 2]), Kind.SEQUENCE),
    (dbus.Struct((1, 2)), Kind.SEQUENCE),
    ([], Kind.SEQUENCE),
    (dbus.Double(1.5), Kind.UNKNOWN),
    ({"a": 1}, Kind.UNKNOWN),
    (None, Kind.UNKNOWN),
])
def test_kind_of(value, kind):
    assert kind_of(value) is kind


def test_boolean_is_not_a_counter():
    assert as_uint64(dbus.Boolean(True)) == (0, False)
    assert as_uint64(True) == (0, False)


def test_signed_values_are_not_counters():
    assert as_uint64(dbus.Int32(5)) == (0, False)
    assert as_uint64(dbus.Int64(5)) == (0, False)


@pytest.mark.parametrize("value, expected", [
    (dbus.Int32(7), (7, True)),
    (dbus.UInt16(7), (7, True)),
    (7, (7, True)),
    (dbus.Int32(-7), (0, False)),
    (dbus.Boolean(True), (0, False)),
    (dbus.String("7"), (0, False)),
])
def test_as_identifier(value, expected):
    assert as_identifier(value) == expected


def test_counter_is_not_a_flag():
    assert as_bool(dbus.UInt64(1)) == (False, False)


def test_accessors_return_plain_types():
    value, ok = as_uint64(dbus.UInt64(10))
    assert ok and value == 10 and type(value) is int

    value, ok = as_bool(dbus.Boolean(True))
    assert ok and value is True

    value, ok = as_string(dbus.String("/export/a"))
    assert ok and value == "/export/a" and type(value) is str


def test_accessors_degrade_to_zero_values():
    assert as_string(dbus.UInt64(1)) == ("", False)
    assert as_uint64("10") == (0, False)
    assert as_bool(None) == (False, False)
    assert as_sequence("abc") == ((), False)


def test_as_sequence_keeps_elements_uninterpreted():
    arr = dbus.Array([dbus.String("a"), dbus.UInt64(1)])
    seq, ok = as_sequence(arr)
    assert ok
    assert seq is arr


def test_as_timespec():
    ts_, ok = as_timespec(dbus.Struct((dbus.UInt64(3), dbus.UInt64(500000000))))
    assert ok
    assert ts_ == Timespec(3, 500000000)
    assert ts_.timestamp() == 3.5


@pytest.mark.parametrize("value", [
    (1,), (1, 2, 3), ("a", 1), dbus.UInt64(4), None,
])
def test_as_timespec_rejects_other_shapes(value):
    assert as_timespec(value) == (Timespec(), False)


def test_cursor_never_reads_past_the_end():
    cursor = ReplyCursor([dbus.Boolean(True)])
    assert cursor.remaining() == 1
    assert cursor.read_flag() == (True, True)
    assert cursor.exhausted()
    assert cursor.read_flag() == (False, False)
    assert cursor.peek() == (None, False)
    cursor.advance(5)
    assert cursor.remaining() == 0


def test_cursor_read_flag_on_non_boolean():
    cursor = ReplyCursor([dbus.UInt64(1), dbus.Boolean(False)])
    assert cursor.read_flag() == (False, False)
    assert cursor.read_flag() == (False, True)
