"""
Signing and verification of TSIG protected DNS messages

This module builds the data a transaction signature covers (RFC 8945 section
4.3), signs unsigned messages and checks the TSIG record at the end of a
received message. Verification outcomes are reported as TSIG response codes
stored on the record instead of being raised, so callers can answer with the
matching TSIG error.
"""

from typing import Callable, Optional, Tuple
from datetime import datetime, timezone
from enum import Enum
import hmac
import logging

from . import ser
from .ser import FramingError, UnknownAlgorithmError
from .algorithm import TSigAlgorithm, canonical_name, digest_size, keyed_hash
from .rr import Name, TSigRecord, ReturnCode, parse_record
from .timestamp import encode_time, to_epoch_seconds, TIME_LEN

logger = logging.getLogger(__name__)

# Fixed DNS header layout
HEADER_LEN = 12
ID_OFFSET = 0
QDCOUNT_OFFSET = 4
ARCOUNT_OFFSET = 10

# Returns the secret for a key, or None if the key is not known
KeySelector = Callable[[TSigAlgorithm, Name], Optional[bytes]]


class ValidationError(Exception):
    """A message whose TSIG record cannot be located or used"""

    class ErrorType(Enum):
        """Types of validation errors"""
        MISPLACED = "misplaced"
        NOT_PARSED = "not_parsed"

    def __init__(self, error_type: ErrorType, message: str = ""):
        self.error_type = error_type
        super().__init__(f"{error_type.value}: {message}" if message else error_type.value)


def tsig_variables(record: TSigRecord, timers_only: bool = False) -> bytes:
    """
    The TSIG fields covered by the MAC

    For the first message of an exchange these are the owner name, class,
    TTL, algorithm name, time signed, fudge, error and other data, with names
    in uncompressed canonical form. Subsequent messages of a multi-message
    response only cover time signed and fudge.
    """
    if timers_only:
        return encode_time(record.time_signed) + record.fudge_seconds.to_bytes(2, 'big')

    wire_name = canonical_name(record.algorithm)
    if wire_name is None:
        raise UnknownAlgorithmError("Cannot compute TSIG variables for unknown algorithm")

    buf = bytearray(record.name.wire_len() + 6 + ser.name_len(wire_name) + TIME_LEN + 6
                    + len(record.other_data))
    offset = ser.write_name(buf, 0, str(record.name))
    offset = ser.write_u16(buf, offset, record.record_class)
    offset = ser.write_u32(buf, offset, record.ttl)
    offset = ser.write_name(buf, offset, wire_name)
    offset = ser.write_bytes(buf, offset, encode_time(record.time_signed))
    offset = ser.write_u16(buf, offset, record.fudge_seconds)
    offset = ser.write_u16(buf, offset, record.error)
    offset = ser.write_u16_len_prefixed_bytes(buf, offset, record.other_data)
    return bytes(buf[:offset])


def _compute_mac(algorithm: TSigAlgorithm, key: bytes, request_mac: Optional[bytes],
                 message: bytes, record: TSigRecord, timers_only: bool) -> bytes:
    hasher = keyed_hash(algorithm, key)
    if request_mac:
        hasher.update(len(request_mac).to_bytes(2, 'big'))
        hasher.update(request_mac)
    hasher.update(message)
    hasher.update(tsig_variables(record, timers_only))
    return hasher.finish().as_ref()


def sign_message(message: bytes, record: TSigRecord, key: Optional[bytes] = None,
                 request_mac: bytes = b"", timers_only: bool = False) -> Tuple[bytes, bytes]:
    """
    Append a TSIG record signing message

    Args:
        message: The complete unsigned wire format message
        record: TSIG record to append; it is not modified
        key: Shared secret, defaults to record.key_data
        request_mac: MAC of the request when signing a response
        timers_only: Sign a subsequent message of a multi-message response

    Returns:
        (signed_message, mac); the MAC is empty when there is no key, which is
        how unsigned TSIG error responses are produced

    Raises:
        UnknownAlgorithmError: The record's algorithm cannot be put on the wire
        FramingError: message is shorter than a DNS header
    """
    if len(message) < HEADER_LEN:
        raise FramingError("Message shorter than DNS header")
    if canonical_name(record.algorithm) is None:
        raise UnknownAlgorithmError("Cannot sign with unknown algorithm")

    if key is None:
        key = record.key_data

    if key:
        digest_input = bytearray(message)
        ser.write_u16(digest_input, ID_OFFSET, record.original_id)
        mac = _compute_mac(record.algorithm, key, request_mac, bytes(digest_input), record,
                           timers_only)
    else:
        mac = b''

    extra = max(0, len(mac) - digest_size(record.algorithm))
    buf = bytearray(len(message) + record.maximum_length + extra)
    buf[:len(message)] = message
    arcount, _ = ser.read_u16(message, ARCOUNT_OFFSET)
    ser.write_u16(buf, ARCOUNT_OFFSET, arcount + 1)

    written = record.encode(buf, len(message), {}, 0, mac)
    return bytes(buf[:len(message) + written]), mac


def _macs_match(record: TSigRecord, computed_mac: bytes) -> bool:
    return hmac.compare_digest(record.mac, computed_mac)


def check_mac(record: TSigRecord, computed_mac: bytes) -> ReturnCode:
    """Compare a recomputed MAC with the one carried by record and store the outcome"""
    if _macs_match(record, computed_mac):
        result = ReturnCode.NOERROR
    else:
        result = ReturnCode.BADSIG
    record._set_validation_result(result)
    return result


def verify_record(message: bytes, record: TSigRecord, key_selector: Optional[KeySelector],
                  request_mac: Optional[bytes] = None, now: Optional[datetime] = None,
                  timers_only: bool = False) -> ReturnCode:
    """
    Verify the TSIG record parsed from message

    Checks, in order, that a key is available for the record's algorithm and
    name (BADKEY), that the MAC matches (BADSIG) and that the signing time is
    within the fudge of now (BADTIME). The outcome is stored in
    record.validation_result and returned.

    Args:
        message: The complete signed message record was parsed from
        record: TSIG record returned by find_tsig_record for message
        key_selector: Looks up the secret for (algorithm, key name)
        request_mac: MAC of the request when verifying a response
        now: Reference time, defaults to the current time
        timers_only: Verify a subsequent message of a multi-message response
    """
    if record.start_position is None:
        raise ValidationError(ValidationError.ErrorType.NOT_PARSED,
                              "TSIG record was not parsed from a message")

    key = None
    if record.algorithm != TSigAlgorithm.UNKNOWN and key_selector is not None:
        key = key_selector(record.algorithm, record.name)

    if not key:
        result = ReturnCode.BADKEY
    elif not record.mac:
        result = ReturnCode.BADSIG
    else:
        record.key_data = key

        digest_input = bytearray(message[:record.start_position])
        arcount, _ = ser.read_u16(digest_input, ARCOUNT_OFFSET)
        ser.write_u16(digest_input, ID_OFFSET, record.original_id)
        ser.write_u16(digest_input, ARCOUNT_OFFSET, arcount - 1)

        computed = _compute_mac(record.algorithm, key, request_mac, bytes(digest_input), record,
                                timers_only)
        if not _macs_match(record, computed):
            result = ReturnCode.BADSIG
        else:
            result = ReturnCode.NOERROR
            if now is None:
                now = datetime.now(timezone.utc)
            skew = to_epoch_seconds(record.time_signed) - to_epoch_seconds(now)
            if abs(skew) > record.fudge_seconds:
                result = ReturnCode.BADTIME

    record._set_validation_result(result)
    if result != ReturnCode.NOERROR:
        logger.debug("TSIG verification of %s (%s) failed: %s", record.name,
                     record.algorithm_name, result.name)
    return result


def _skip_questions(message: bytes, offset: int, count: int) -> int:
    for _ in range(count):
        _, offset = ser.read_wire_packet_name(message, offset)
        # type and class
        _, offset = ser.read_u32(message, offset)
    return offset


def find_tsig_record(message: bytes) -> Optional[TSigRecord]:
    """
    Locate and parse the TSIG record of a message

    Returns:
        The TSIG record, or None if the message is not signed

    Raises:
        ValidationError: A TSIG record appears anywhere but as the last
            additional record
        SerializationError: The message is malformed
    """
    if len(message) < HEADER_LEN:
        raise FramingError("Message shorter than DNS header")

    qdcount, _ = ser.read_u16(message, QDCOUNT_OFFSET)
    ancount, _ = ser.read_u16(message, QDCOUNT_OFFSET + 2)
    nscount, _ = ser.read_u16(message, QDCOUNT_OFFSET + 4)
    arcount, _ = ser.read_u16(message, ARCOUNT_OFFSET)

    offset = _skip_questions(message, HEADER_LEN, qdcount)
    total = ancount + nscount + arcount
    tsig = None
    for idx in range(total):
        record, offset = parse_record(message, offset)
        if isinstance(record, TSigRecord):
            if idx != total - 1 or arcount == 0:
                raise ValidationError(ValidationError.ErrorType.MISPLACED,
                                      "TSIG record must be the last additional record")
            tsig = record
    return tsig


def verify_message(message: bytes, key_selector: Optional[KeySelector],
                   request_mac: Optional[bytes] = None, now: Optional[datetime] = None,
                   timers_only: bool = False) -> Optional[TSigRecord]:
    """
    Verify a signed message

    Returns:
        The message's TSIG record with validation_result set, or None if the
        message carries no TSIG record
    """
    record = find_tsig_record(message)
    if record is None:
        return None
    verify_record(message, record, key_selector, request_mac, now, timers_only)
    return record
