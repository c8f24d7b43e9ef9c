"""
Simple wrapper around the HMAC constructions TSIG supports, so that every
algorithm can be driven through the same update/finish interface.
"""

import hashlib
import hmac


class HashResult:
    """Container for hash results that can return bytes via as_ref()"""
    
    def __init__(self, hash_bytes: bytes):
        self._bytes = hash_bytes
    
    def as_ref(self) -> bytes:
        """Return the hash bytes"""
        return self._bytes
    
    def __len__(self) -> int:
        return len(self._bytes)


class KeyedHasher:
    """HMAC engine over MD5, SHA1, SHA256, SHA384 or SHA512, bound to one key"""
    
    SUPPORTED = ('md5', 'sha1', 'sha256', 'sha384', 'sha512')
    
    def __init__(self, algorithm: str, key: bytes):
        if algorithm not in self.SUPPORTED:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        self._hmac = hmac.new(bytes(key), digestmod=getattr(hashlib, algorithm))
    
    @property
    def digest_size(self) -> int:
        """Size of the MAC this engine produces, in bytes"""
        return self._hmac.digest_size
    
    def update(self, data: bytes) -> None:
        """Update the hasher with new data"""
        self._hmac.update(data)
    
    def finish(self) -> HashResult:
        """Finalize the MAC and return the result"""
        return HashResult(self._hmac.digest())
    
    def compute(self, data: bytes) -> bytes:
        """One-shot MAC over data"""
        self.update(data)
        return self.finish().as_ref()
