"""
Keyed-hash primitives for TSIG

This module provides the HMAC engine used to compute and check transaction
signatures.
"""

from .hash import KeyedHasher, HashResult

__all__ = [
    'KeyedHasher',
    'HashResult'
]
