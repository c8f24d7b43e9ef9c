"""
TSIG algorithm registry

Maps each supported TSIG algorithm to the domain name identifying it on the
wire, the HMAC construction computing it and the size of the MAC it produces.
None of these lookups raise: an unrecognized name resolves to
TSigAlgorithm.UNKNOWN and lookups on UNKNOWN return None or 0, so callers must
check for the sentinel before using the result.
"""

from enum import Enum
from typing import Optional

from .crypto import KeyedHasher


class TSigAlgorithm(Enum):
    """Algorithms usable for transaction signatures"""
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"
    UNKNOWN = "unknown"


# RFC 8945 section 6
_CANONICAL_NAMES = {
    TSigAlgorithm.MD5: "hmac-md5.sig-alg.reg.int",
    TSigAlgorithm.SHA1: "hmac-sha1",
    TSigAlgorithm.SHA256: "hmac-sha256",
    TSigAlgorithm.SHA384: "hmac-sha384",
    TSigAlgorithm.SHA512: "hmac-sha512",
}

_BY_NAME = {name: algorithm for algorithm, name in _CANONICAL_NAMES.items()}

_DIGEST_SIZES = {
    TSigAlgorithm.MD5: 16,
    TSigAlgorithm.SHA1: 20,
    TSigAlgorithm.SHA256: 32,
    TSigAlgorithm.SHA384: 48,
    TSigAlgorithm.SHA512: 64,
}


def canonical_name(algorithm: TSigAlgorithm) -> Optional[str]:
    """The lowercase wire name of algorithm, or None for UNKNOWN"""
    return _CANONICAL_NAMES.get(algorithm)


def from_name(name: str) -> TSigAlgorithm:
    """
    Resolve an algorithm from its domain name

    The comparison is case-insensitive and ignores a trailing root dot, so
    names read off the wire can be passed in directly.
    """
    if not name:
        return TSigAlgorithm.UNKNOWN
    normalized = name.lower()
    if normalized.endswith('.'):
        normalized = normalized[:-1]
    return _BY_NAME.get(normalized, TSigAlgorithm.UNKNOWN)


def digest_size(algorithm: TSigAlgorithm) -> int:
    """MAC size in bytes, 0 for UNKNOWN"""
    return _DIGEST_SIZES.get(algorithm, 0)


def keyed_hash(algorithm: TSigAlgorithm, key: bytes) -> Optional[KeyedHasher]:
    """A fresh HMAC engine for algorithm bound to key, or None for UNKNOWN"""
    if algorithm not in _CANONICAL_NAMES:
        return None
    return KeyedHasher(algorithm.value, key)
