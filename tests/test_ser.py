"""
Test cases for the wire format primitives
"""

import pytest

from pytsig import ser
from pytsig.ser import SerializationError, FramingError, BufferTooSmallError


def test_integer_reads_are_big_endian():
    data = b"\x12\x34\x56\x78"
    assert ser.read_u8(data, 0) == (0x12, 1)
    assert ser.read_u16(data, 0) == (0x1234, 2)
    assert ser.read_u16(data, 2) == (0x5678, 4)
    assert ser.read_u32(data, 0) == (0x12345678, 4)


def test_reads_past_end_fail():
    data = b"\x00\x01\x02"
    with pytest.raises(FramingError):
        ser.read_u16(data, 2)
    with pytest.raises(FramingError):
        ser.read_u32(data, 0)
    with pytest.raises(FramingError):
        ser.read_u8(data, 3)


def test_reads_respect_end_bound():
    data = b"\x00\x01\x02\x03"
    with pytest.raises(FramingError):
        ser.read_u16(data, 1, end=2)
    assert ser.read_u16(data, 0, end=2) == (1, 2)


def test_length_prefixed_bytes():
    data = b"\x00\x03abcde"
    assert ser.read_u16_len_prefixed_bytes(data, 0) == (b"abc", 5)
    assert ser.read_u16_len_prefixed_bytes(b"\x00\x00", 0) == (b"", 2)
    with pytest.raises(FramingError):
        ser.read_u16_len_prefixed_bytes(b"\x00\x09abc", 0)
    with pytest.raises(FramingError):
        ser.read_u16_len_prefixed_bytes(data, 0, end=4)


def test_read_name():
    data = b"\x03www\x07example\x00rest"
    assert ser.read_wire_packet_name(data, 0) == ("www.example.", 13)
    assert ser.read_wire_packet_name(b"\x00", 0) == (".", 1)


def test_read_compressed_name():
    data = b"\x07example\x00\x03www\xc0\x00"
    name, offset = ser.read_wire_packet_name(data, 9)
    assert name == "www.example."
    assert offset == len(data)


def test_read_name_errors():
    with pytest.raises(FramingError):
        ser.read_wire_packet_name(b"\x05abc", 0)
    with pytest.raises(FramingError):
        ser.read_wire_packet_name(b"\x03abc", 0)
    with pytest.raises(FramingError):
        ser.read_wire_packet_name(b"\xc0\x20", 0)
    # Pointer to itself
    with pytest.raises(SerializationError):
        ser.read_wire_packet_name(b"\xc0\x00", 0)
    with pytest.raises(SerializationError):
        ser.read_wire_packet_name(b"\x41\x01\x00", 0)


def test_writes():
    buf = bytearray(8)
    offset = ser.write_u16(buf, 0, 0xabcd)
    offset = ser.write_u32(buf, offset, 0x01020304)
    offset = ser.write_bytes(buf, offset, b"\xee")
    assert offset == 7
    assert bytes(buf) == b"\xab\xcd\x01\x02\x03\x04\xee\x00"


def test_writes_past_end_fail():
    with pytest.raises(BufferTooSmallError):
        ser.write_u16(bytearray(1), 0, 1)
    with pytest.raises(BufferTooSmallError):
        ser.write_bytes(bytearray(4), 2, b"abc")
    with pytest.raises(BufferTooSmallError):
        ser.write_name(bytearray(5), 0, "example.")


def test_write_name_round_trip():
    buf = bytearray(32)
    end = ser.write_name(buf, 0, "WWW.Example.")
    assert bytes(buf[:end]) == b"\x03www\x07example\x00"
    assert end == ser.name_len("www.example.")
    assert ser.read_wire_packet_name(bytes(buf), 0) == ("www.example.", end)


def test_write_name_compression():
    buf = bytearray(64)
    table = {}
    first = ser.write_name(buf, 0, "www.example.", table, compress=True)
    assert table == {"www.example": 0, "example": 4}
    second = ser.write_name(buf, first, "mail.example.", table, compress=True)
    assert bytes(buf[first:second]) == b"\x04mail\xc0\x04"
    assert table["mail.example"] == first
    name, offset = ser.read_wire_packet_name(bytes(buf), first)
    assert (name, offset) == ("mail.example.", second)


def test_write_name_without_compression_leaves_table_alone():
    buf = bytearray(64)
    table = {"example": 0}
    end = ser.write_name(buf, 0, "www.example.", table, compress=False)
    assert end == 13
    assert table == {"example": 0}


def test_compression_relative_to_message_offset():
    buf = bytearray(64)
    table = {}
    ser.write_name(buf, 10, "example.", table, compress=True, message_offset=10)
    assert table == {"example": 0}


def test_bad_labels():
    with pytest.raises(SerializationError):
        ser.write_name(bytearray(100), 0, "a" * 64 + ".")
    with pytest.raises(SerializationError):
        ser.write_name(bytearray(100), 0, "a..b.")
    with pytest.raises(SerializationError):
        ser.write_u16_len_prefixed_bytes(bytearray(70000), 0, bytes(65536))


def test_name_len():
    assert ser.name_len(".") == 1
    assert ser.name_len("example.") == 9
    assert ser.name_len("hmac-sha256") == 13
    assert ser.name_len("hmac-md5.sig-alg.reg.int") == 26
