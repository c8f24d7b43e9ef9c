"""
Resource Records - the fundamental type in DNS

This module holds the abstract resource record interface and the transaction
signature record built on it, together with the header parsing that locates
and dispatches records inside a DNS message.
"""

from typing import Dict, Optional, Tuple, Union
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from enum import IntEnum
import base64
import logging

from . import ser
from .ser import SerializationError, FramingError, UnknownAlgorithmError
from .algorithm import TSigAlgorithm, canonical_name, from_name, digest_size
from .timestamp import encode_time, decode_time, to_epoch_seconds, TIME_LEN

logger = logging.getLogger(__name__)


class RecordType(IntEnum):
    """Resource record types handled here"""
    TSIG = 250


class RecordClass(IntEnum):
    INET = 1
    NONE = 254
    ANY = 255


class ReturnCode(IntEnum):
    """DNS response codes, including the ones defined for TSIG"""
    NOERROR = 0
    FORMERR = 1
    SERVFAIL = 2
    NXDOMAIN = 3
    NOTIMP = 4
    REFUSED = 5
    YXDOMAIN = 6
    YXRRSET = 7
    NXRRSET = 8
    NOTAUTH = 9
    NOTZONE = 10
    # RFC 8945
    BADSIG = 16
    BADKEY = 17
    BADTIME = 18
    # RFC 2930
    BADMODE = 19
    BADNAME = 20
    BADALG = 21
    # RFC 4635
    BADTRUNC = 22


def to_return_code(value: int) -> Union[ReturnCode, int]:
    """Map value onto ReturnCode when it is a known code, else keep the int"""
    try:
        return ReturnCode(value)
    except ValueError:
        return value


class Name:
    """
    A valid domain name.

    It is stored with a trailing ".", may be no longer than 255 bytes, consists
    of only printable ASCII characters and each label may be no longer than 63
    bytes. Comparison is case-insensitive.
    """

    def __init__(self, name: str):
        self._name = self._validate_and_normalize(name)

    @staticmethod
    def _validate_and_normalize(name: str) -> str:
        """Validate and normalize a domain name"""
        if not name:
            raise ValueError("Name cannot be empty")

        if not name.endswith('.'):
            name = name + '.'

        if len(name.encode('utf-8')) > 255:
            raise ValueError("Name too long (max 255 bytes)")

        # Check for printable ASCII characters (excluding quote)
        for char in name:
            if not (char.isprintable() and ord(char) < 128) or char == '"':
                raise ValueError("Name contains invalid characters")

        if name != ".":
            for label in name.split('.')[:-1]:  # Skip the empty label from trailing dot
                if not label:
                    raise ValueError("Name contains an empty label")
                if len(label.encode('utf-8')) > 63:
                    raise ValueError("Label too long (max 63 bytes)")

        return name.lower()

    @property
    def name(self) -> str:
        """Get the underlying domain name string"""
        return self._name

    def wire_len(self) -> int:
        """Uncompressed length of this name on the wire"""
        return ser.name_len(self._name)

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"Name('{self._name}')"

    def __eq__(self, other) -> bool:
        if isinstance(other, Name):
            return self._name == other._name
        elif isinstance(other, str):
            try:
                return self._name == self._validate_and_normalize(other)
            except ValueError:
                return False
        return False

    def __hash__(self) -> int:
        return hash(self._name)


# owner name, type, class, TTL, RDLENGTH
RECORD_HEADER_FIXED_LEN = 10


class Record(ABC):
    """Abstract base class for DNS resource records"""

    TYPE: int
    CLASS: int = RecordClass.INET

    # Offset of the record's owner name inside the message it was parsed from
    start_position: Optional[int] = None

    @property
    @abstractmethod
    def name(self) -> Name:
        """Get the name this record refers to"""
        pass

    @property
    def type_code(self) -> int:
        """Get the DNS type code for this record"""
        return self.TYPE

    @property
    def record_class(self) -> int:
        return self.CLASS

    @property
    def ttl(self) -> int:
        return 0

    @classmethod
    @abstractmethod
    def from_wire_data(cls, name: Name, data: bytes, offset: int, length: int) -> 'Record':
        """Parse this record type from the length bytes of record data at offset.

        data must be the complete message so compressed names can be followed.
        """
        pass

    @abstractmethod
    def encode_record_data(self, buf: bytearray, offset: int, domain_names: Dict[str, int],
                           message_offset: int = 0) -> int:
        """Write this record's data in wire format (without name/type/class/ttl header),
        return the new offset"""
        pass

    @property
    @abstractmethod
    def maximum_record_data_length(self) -> int:
        """Upper bound of the encoded record data length"""
        pass

    @abstractmethod
    def record_data_to_string(self) -> str:
        """Presentation format of the record data"""
        pass

    @property
    def maximum_length(self) -> int:
        """Upper bound of the whole encoded record, header included"""
        return self.name.wire_len() + RECORD_HEADER_FIXED_LEN + self.maximum_record_data_length

    def encode_record_header(self, buf: bytearray, offset: int, domain_names: Dict[str, int],
                             message_offset: int = 0) -> int:
        """Write owner name, type, class, TTL and a zero RDLENGTH placeholder.

        Returns the offset of the record data.
        """
        offset = ser.write_name(buf, offset, str(self.name), domain_names, True, message_offset)
        offset = ser.write_u16(buf, offset, self.type_code)
        offset = ser.write_u16(buf, offset, self.record_class)
        offset = ser.write_u32(buf, offset, self.ttl)
        return ser.write_u16(buf, offset, 0)

    def encode(self, buf: bytearray, offset: int, domain_names: Dict[str, int],
               message_offset: int = 0, **data_args) -> int:
        """Write the whole record at offset, return the number of bytes written

        data_args are handed on to encode_record_data.
        """
        data_offset = self.encode_record_header(buf, offset, domain_names, message_offset)
        end = self.encode_record_data(buf, data_offset, domain_names, message_offset, **data_args)
        ser.write_u16(buf, data_offset - 2, end - data_offset)
        return end - offset

    def __str__(self) -> str:
        return f"{self.name} {self.ttl} {_class_to_string(self.record_class)} " \
               f"{_type_to_string(self.type_code)} {self.record_data_to_string()}".rstrip()


def _class_to_string(record_class: int) -> str:
    if record_class == RecordClass.INET:
        return "IN"
    if record_class == RecordClass.NONE:
        return "NONE"
    if record_class == RecordClass.ANY:
        return "*"
    return f"CLASS{record_class}"


def _type_to_string(record_type: int) -> str:
    try:
        return RecordType(record_type).name
    except ValueError:
        return f"TYPE{record_type}"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


class TSigRecord(Record):
    """
    Transaction signature record, RFC 8945

    Outbound records are constructed without a MAC; the MAC to embed is passed
    to encode(). Inbound records come out of from_wire_data() carrying the MAC
    read off the wire, and their validation_result stays None until the record
    has been verified.
    """

    TYPE = RecordType.TSIG
    CLASS = RecordClass.ANY

    # time signed, fudge, MAC size, original id, error, other len,
    # plus the two bytes the algorithm name adds over its text length
    FIXED_DATA_LEN = 18

    def __init__(self, name: Union[Name, str], algorithm: TSigAlgorithm, time_signed: datetime,
                 fudge: timedelta, original_id: int, error: int = ReturnCode.NOERROR,
                 other_data: Optional[bytes] = None, key_data: Optional[bytes] = None):
        self._name = name if isinstance(name, Name) else Name(name)
        self.algorithm = algorithm
        self._algorithm_name = canonical_name(algorithm)
        self.time_signed = time_signed
        self.fudge = fudge
        self._mac = b''
        self.original_id = original_id
        self.error = to_return_code(error)
        self.other_data = bytes(other_data) if other_data is not None else b''
        self.key_data = key_data
        self._validation_result: Optional[ReturnCode] = None

    @property
    def name(self) -> Name:
        return self._name

    @property
    def algorithm_name(self) -> Optional[str]:
        """Canonical name of the algorithm, or the name as read off the wire
        when the algorithm is not supported"""
        return canonical_name(self.algorithm) or self._algorithm_name

    @property
    def mac(self) -> bytes:
        """MAC carried by a parsed record; empty on records built locally"""
        return self._mac

    @property
    def validation_result(self) -> Optional[ReturnCode]:
        """Outcome of the last verification, None if never verified"""
        return self._validation_result

    def _set_validation_result(self, result: ReturnCode):
        self._validation_result = result

    @property
    def fudge_seconds(self) -> int:
        return int(self.fudge.total_seconds())

    @classmethod
    def from_wire_data(cls, name: Name, data: bytes, offset: int, length: int) -> 'TSigRecord':
        end = offset + length
        if end > len(data):
            raise FramingError("TSIG record data extends beyond packet")

        algorithm_name, offset = ser.read_wire_packet_name(data, offset)
        if offset > end:
            raise FramingError("TSIG algorithm name extends beyond record data")
        algorithm = from_name(algorithm_name)

        time_data, offset = ser.read_bytes(data, offset, TIME_LEN, end)
        time_signed = decode_time(time_data)
        fudge, offset = ser.read_u16(data, offset, end)
        mac, offset = ser.read_u16_len_prefixed_bytes(data, offset, end)
        original_id, offset = ser.read_u16(data, offset, end)
        error, offset = ser.read_u16(data, offset, end)
        other_data, offset = ser.read_u16_len_prefixed_bytes(data, offset, end)

        record = cls(name, algorithm, time_signed, timedelta(seconds=fudge), original_id,
                     error, other_data)
        record._mac = mac
        if algorithm == TSigAlgorithm.UNKNOWN:
            record._algorithm_name = algorithm_name.rstrip('.')
            logger.debug("TSIG record %s uses unsupported algorithm %s", name, algorithm_name)
        return record

    def encode_record_data(self, buf: bytearray, offset: int, domain_names: Dict[str, int],
                           message_offset: int = 0, mac: Optional[bytes] = None) -> int:
        wire_name = canonical_name(self.algorithm)
        if wire_name is None:
            raise UnknownAlgorithmError("Cannot encode TSIG record with unknown algorithm")
        if mac is None:
            mac = self._mac

        # The algorithm name is never a compression target
        offset = ser.write_name(buf, offset, wire_name, domain_names, False, message_offset)
        offset = ser.write_bytes(buf, offset, encode_time(self.time_signed))
        offset = ser.write_u16(buf, offset, self.fudge_seconds)
        offset = ser.write_u16_len_prefixed_bytes(buf, offset, mac)
        offset = ser.write_u16(buf, offset, self.original_id)
        offset = ser.write_u16(buf, offset, self.error)
        return ser.write_u16_len_prefixed_bytes(buf, offset, self.other_data)

    def encode(self, buf: bytearray, offset: int, domain_names: Dict[str, int],
               message_offset: int = 0, mac: Optional[bytes] = None) -> int:
        """
        Write the record at offset and return the number of bytes written

        Args:
            buf: Message buffer, sized by the caller
            offset: Where the record starts
            domain_names: Compression table shared with the rest of the message
            message_offset: Where the message starts inside buf
            mac: MAC to embed; the record's own MAC when None

        Raises:
            UnknownAlgorithmError: The algorithm has no wire name
            BufferTooSmallError: buf cannot hold the record
        """
        if canonical_name(self.algorithm) is None:
            raise UnknownAlgorithmError("Cannot encode TSIG record with unknown algorithm")
        return super().encode(buf, offset, domain_names, message_offset, mac=mac)

    def to_wire(self, mac: Optional[bytes] = None) -> bytes:
        """Encode this record on its own, without name compression"""
        if mac is None:
            mac = self._mac
        # maximum_length only allows for a MAC of the digest size
        extra = max(0, len(mac) - digest_size(self.algorithm))
        buf = bytearray(self.maximum_length + extra)
        written = self.encode(buf, 0, {}, mac=mac)
        return bytes(buf[:written])

    @property
    def maximum_record_data_length(self) -> int:
        wire_name = canonical_name(self.algorithm)
        if wire_name is None:
            raise UnknownAlgorithmError("Unknown algorithm has no wire length")
        return len(wire_name) + self.FIXED_DATA_LEN + digest_size(self.algorithm) + len(self.other_data)

    def record_data_to_string(self) -> str:
        return " ".join([
            self.algorithm_name or "",
            str(to_epoch_seconds(self.time_signed)),
            str(self.fudge_seconds),
            str(len(self._mac)),
            _b64(self._mac),
            str(self.original_id),
            str(int(self.error)),
            str(len(self.other_data)),
            _b64(self.other_data),
        ])

    def __eq__(self, other) -> bool:
        return (isinstance(other, TSigRecord) and
                self._name == other._name and
                self.algorithm == other.algorithm and
                to_epoch_seconds(self.time_signed) == to_epoch_seconds(other.time_signed) and
                self.fudge_seconds == other.fudge_seconds and
                self._mac == other._mac and
                self.original_id == other.original_id and
                self.error == other.error and
                self.other_data == other.other_data)

    __hash__ = None

    def __repr__(self) -> str:
        return f"TSigRecord({self.record_data_to_string()!r})"


# Record type registry
RECORD_TYPES = {
    TSigRecord.TYPE: TSigRecord,
}


def parse_record(data: bytes, offset: int) -> Tuple[Optional[Record], int]:
    """
    Parse one resource record from a DNS message

    Args:
        data: The complete wire format message
        offset: Where the record's owner name starts

    Returns:
        (record, new_offset); record is None for types this library does not
        model, which are skipped
    """
    start_position = offset
    name_str, offset = ser.read_wire_packet_name(data, offset)

    rr_type, offset = ser.read_u16(data, offset)
    rr_class, offset = ser.read_u16(data, offset)
    _ttl, offset = ser.read_u32(data, offset)
    rdlength, offset = ser.read_u16(data, offset)

    if offset + rdlength > len(data):
        raise FramingError("Record data extends beyond packet")

    record_type = RECORD_TYPES.get(rr_type)
    if record_type is None:
        logger.debug("Skipping record %s of type %d", name_str, rr_type)
        return None, offset + rdlength

    if rr_class != record_type.CLASS:
        raise SerializationError("Unsupported record class")

    try:
        name = Name(name_str)
    except ValueError as e:
        raise SerializationError(f"Invalid owner name: {e}")

    record = record_type.from_wire_data(name, data, offset, rdlength)
    record.start_position = start_position
    return record, offset + rdlength
