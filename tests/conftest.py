"""
Shared pytest configuration and fixtures.
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Ensure 'src' is on sys.path so 'pytsig' is importable without installing
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from pytsig import TSigAlgorithm, TSigRecord  # noqa: E402

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def sha256_record():
    """The SHA256 record used throughout: epoch + 1,000,000s, fudge 300, id 0x1234"""
    return TSigRecord(
        "key.example.", TSigAlgorithm.SHA256, EPOCH + timedelta(seconds=1000000),
        timedelta(seconds=300), 0x1234
    )
