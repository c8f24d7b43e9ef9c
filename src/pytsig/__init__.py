"""
Python TSIG Library

Transaction signatures (RFC 8945) for DNS messages: the algorithm registry,
the wire format TSIG record, the 48-bit signing time codec, and signing and
verification of whole messages.

This library works on raw message bytes. Sending and receiving them, and
building the rest of the DNS message, are left to the caller.
"""

from .algorithm import (
    TSigAlgorithm,
    canonical_name,
    from_name,
    digest_size,
    keyed_hash
)

from .rr import (
    Name,
    Record,
    TSigRecord,
    RecordType,
    RecordClass,
    ReturnCode,
    parse_record
)

from .timestamp import (
    encode_time,
    decode_time,
    encode_seconds,
    decode_seconds
)

from .ser import (
    SerializationError,
    FramingError,
    BufferTooSmallError,
    UnknownAlgorithmError
)

from .validation import (
    ValidationError,
    KeySelector,
    tsig_variables,
    sign_message,
    check_mac,
    verify_record,
    find_tsig_record,
    verify_message
)

from .config import (
    TSigKeyConfig,
    TSigSettings
)

__version__ = "0.1.0"

__all__ = [
    # Algorithm registry
    "TSigAlgorithm",
    "canonical_name",
    "from_name",
    "digest_size",
    "keyed_hash",

    # DNS record types
    "Name",
    "Record",
    "TSigRecord",
    "RecordType",
    "RecordClass",
    "ReturnCode",
    "parse_record",

    # Signing time
    "encode_time",
    "decode_time",
    "encode_seconds",
    "decode_seconds",

    # Serialization
    "SerializationError",
    "FramingError",
    "BufferTooSmallError",
    "UnknownAlgorithmError",

    # Signing and verification
    "ValidationError",
    "KeySelector",
    "tsig_variables",
    "sign_message",
    "check_mac",
    "verify_record",
    "find_tsig_record",
    "verify_message",

    # Configuration
    "TSigKeyConfig",
    "TSigSettings",
]
