"""
Typed TSIG settings

Describes the shared secrets a resolver or server holds and the fudge it signs
with, and turns them into the key selector used by verification.

Example (as loaded from YAML or JSON):
    {
        "fudge": 300,
        "keys": [
            {"name": "transfer.example.", "algorithm": "hmac-sha256",
             "secret": "c2VjcmV0LWtleS1tYXRlcmlhbA=="}
        ]
    }
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from .algorithm import TSigAlgorithm, from_name
from .rr import Name
from .validation import KeySelector

logger = logging.getLogger(__name__)

DEFAULT_FUDGE = 300


class TSigKeyConfig(BaseModel):
    """One shared secret.

    Inputs:
      - name: Key name, which is the owner name of the TSIG records it signs.
      - algorithm: Canonical algorithm name, e.g. "hmac-sha256".
      - secret: Base64 encoded key material.
    """

    name: str
    algorithm: str = "hmac-sha256"
    secret: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return str(Name(value))

    @field_validator("algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        if from_name(value) == TSigAlgorithm.UNKNOWN:
            raise ValueError(f"unsupported TSIG algorithm: {value}")
        return value.lower()

    @field_validator("secret")
    @classmethod
    def _check_secret(cls, value: str) -> str:
        try:
            decoded = base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"secret is not valid base64: {e}")
        if not decoded:
            raise ValueError("secret must not be empty")
        return value

    @property
    def tsig_algorithm(self) -> TSigAlgorithm:
        return from_name(self.algorithm)

    @property
    def key_bytes(self) -> bytes:
        return base64.b64decode(self.secret)


class TSigSettings(BaseModel):
    """TSIG settings: default fudge in seconds and the known keys."""

    fudge: int = Field(default=DEFAULT_FUDGE, ge=0, le=0xffff)
    keys: List[TSigKeyConfig] = Field(default_factory=list)

    @property
    def fudge_delta(self) -> timedelta:
        return timedelta(seconds=self.fudge)

    def find_key(self, name: str) -> Optional[TSigKeyConfig]:
        wanted = Name(name)
        for key in self.keys:
            if Name(key.name) == wanted:
                return key
        return None

    def key_selector(self) -> KeySelector:
        """A selector returning the secret for a matching (algorithm, name)"""
        table: Dict[Tuple[TSigAlgorithm, Name], bytes] = {}
        for key in self.keys:
            index = (key.tsig_algorithm, Name(key.name))
            if index in table:
                logger.warning("Duplicate TSIG key %s (%s), keeping the first", key.name,
                               key.algorithm)
                continue
            table[index] = key.key_bytes

        def select(algorithm: TSigAlgorithm, name: Name) -> Optional[bytes]:
            return table.get((algorithm, name))

        return select
