"""
Logic to read and write TSIG record fields from and into DNS wire format

This module provides the fixed-width integer, length-prefixed byte and domain
name primitives used by the record types, along with the errors raised when a
buffer cannot be read or written.
"""

from typing import Dict, Optional, Tuple
import struct


# Upper bound on compression pointers followed while reading one name
MAX_POINTER_JUMPS = 127


class SerializationError(Exception):
    """Error during serialization/deserialization"""
    pass


class FramingError(SerializationError):
    """A read would go past the available or declared bytes"""
    pass


class BufferTooSmallError(SerializationError):
    """The destination buffer cannot hold the data being written"""
    pass


class UnknownAlgorithmError(SerializationError):
    """The record's algorithm has no wire name, so it cannot be encoded"""
    pass


def _limit(data: bytes, end: Optional[int]) -> int:
    if end is None or end > len(data):
        return len(data)
    return end


def read_u8(data: bytes, offset: int, end: Optional[int] = None) -> Tuple[int, int]:
    """Read a u8 from bytes at offset, return (value, new_offset)"""
    if offset + 1 > _limit(data, end):
        raise FramingError("Not enough data for u8")
    return data[offset], offset + 1


def read_u16(data: bytes, offset: int, end: Optional[int] = None) -> Tuple[int, int]:
    """Read a u16 from bytes at offset in big-endian format"""
    if offset + 2 > _limit(data, end):
        raise FramingError("Not enough data for u16")
    return struct.unpack('>H', data[offset:offset + 2])[0], offset + 2


def read_u32(data: bytes, offset: int, end: Optional[int] = None) -> Tuple[int, int]:
    """Read a u32 from bytes at offset in big-endian format"""
    if offset + 4 > _limit(data, end):
        raise FramingError("Not enough data for u32")
    return struct.unpack('>I', data[offset:offset + 4])[0], offset + 4


def read_bytes(data: bytes, offset: int, length: int, end: Optional[int] = None) -> Tuple[bytes, int]:
    """Read exactly length bytes at offset"""
    if offset + length > _limit(data, end):
        raise FramingError(f"Not enough data for {length} bytes")
    return bytes(data[offset:offset + length]), offset + length


def read_u16_len_prefixed_bytes(data: bytes, offset: int, end: Optional[int] = None) -> Tuple[bytes, int]:
    """Read length-prefixed bytes where length is a u16"""
    length, offset = read_u16(data, offset, end)
    if offset + length > _limit(data, end):
        raise FramingError("Declared length exceeds remaining data")
    return bytes(data[offset:offset + length]), offset + length


def read_wire_packet_name(data: bytes, offset: int) -> Tuple[str, int]:
    """
    Read a DNS name from wire format, following compression pointers

    Pointers are resolved against the whole of data, so data must be the
    complete message the name was taken from.

    Returns (name_string, new_offset)
    """
    name_parts = []
    original_offset = offset
    jumps = 0

    while True:
        if offset >= len(data):
            raise FramingError("Unexpected end of data while reading name")

        length = data[offset]
        offset += 1

        if length == 0:
            # End of name
            break
        elif length >= 0xc0:
            # Compression pointer
            if offset >= len(data):
                raise FramingError("Incomplete compression pointer")

            pointer_offset = ((length & 0x3f) << 8) | data[offset]
            offset += 1

            if jumps == 0:
                original_offset = offset
            jumps += 1
            if jumps > MAX_POINTER_JUMPS:
                raise SerializationError("Too many compression pointers")

            if pointer_offset >= len(data):
                raise FramingError("Compression pointer beyond packet bounds")

            offset = pointer_offset
        elif length >= 0x40:
            raise SerializationError("Unsupported extended label type")
        else:
            # Regular label
            if offset + length > len(data):
                raise FramingError("Label extends beyond available data")

            try:
                label = bytes(data[offset:offset + length]).decode('ascii')
            except UnicodeDecodeError:
                raise SerializationError("Invalid ASCII in DNS label")

            name_parts.append(label)
            offset += length

    if jumps == 0:
        original_offset = offset

    if not name_parts:
        name = "."
    else:
        name = ".".join(name_parts) + "."

    return name, original_offset


def _ensure(buf: bytearray, offset: int, length: int):
    if offset < 0 or offset + length > len(buf):
        raise BufferTooSmallError(
            f"Need {length} bytes at offset {offset}, buffer holds {len(buf)}")


def write_u16(buf: bytearray, offset: int, value: int) -> int:
    """Write a big-endian u16 at offset, return the new offset"""
    if not 0 <= value <= 0xffff:
        raise SerializationError(f"Value {value} does not fit in u16")
    _ensure(buf, offset, 2)
    struct.pack_into('>H', buf, offset, value)
    return offset + 2


def write_u32(buf: bytearray, offset: int, value: int) -> int:
    """Write a big-endian u32 at offset, return the new offset"""
    if not 0 <= value <= 0xffffffff:
        raise SerializationError(f"Value {value} does not fit in u32")
    _ensure(buf, offset, 4)
    struct.pack_into('>I', buf, offset, value)
    return offset + 4


def write_bytes(buf: bytearray, offset: int, data: bytes) -> int:
    """Copy data into buf at offset, return the new offset"""
    _ensure(buf, offset, len(data))
    buf[offset:offset + len(data)] = data
    return offset + len(data)


def write_u16_len_prefixed_bytes(buf: bytearray, offset: int, data: bytes) -> int:
    """Write data preceded by its u16 length"""
    if len(data) > 0xffff:
        raise SerializationError("Data too long for u16 length prefix")
    offset = write_u16(buf, offset, len(data))
    return write_bytes(buf, offset, data)


def write_name(buf: bytearray, offset: int, name: str,
               domain_names: Optional[Dict[str, int]] = None,
               compress: bool = False, message_offset: int = 0) -> int:
    """
    Write a DNS name in wire format at offset, return the new offset

    When compress is set, domain_names maps already written names (lowercase,
    no trailing dot) to their position relative to message_offset. Suffixes
    found there are replaced by a pointer and newly written suffixes are
    added. Without compress the table is neither read nor updated.
    """
    canonical_name = name.lower()
    if canonical_name.endswith('.'):
        canonical_name = canonical_name[:-1]

    labels = canonical_name.split('.') if canonical_name else []
    for idx, label in enumerate(labels):
        suffix = '.'.join(labels[idx:])
        if compress and domain_names is not None:
            pointer = domain_names.get(suffix)
            if pointer is not None:
                return write_u16(buf, offset, 0xc000 | pointer)
            position = offset - message_offset
            if position < 0x4000:
                domain_names[suffix] = position

        label_bytes = label.encode('ascii')
        if not label_bytes:
            raise SerializationError("Empty DNS label")
        if len(label_bytes) > 63:
            raise SerializationError("DNS label too long")
        _ensure(buf, offset, 1 + len(label_bytes))
        buf[offset] = len(label_bytes)
        offset = write_bytes(buf, offset + 1, label_bytes)

    _ensure(buf, offset, 1)
    buf[offset] = 0  # End of name
    return offset + 1


def name_len(name: str) -> int:
    """Calculate the uncompressed wire format length of a DNS name"""
    canonical_name = name.lower()
    if canonical_name in (".", ""):
        return 1
    else:
        if canonical_name.endswith('.'):
            canonical_name = canonical_name[:-1]

        total_len = 1  # Final null byte
        for label in canonical_name.split('.'):
            total_len += 1 + len(label.encode('ascii'))  # Length byte + label
        return total_len
