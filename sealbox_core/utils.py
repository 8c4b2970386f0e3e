"""
sealbox_core.utils
------------------
Lightweight helpers for identifier generation, timestamping and strict
base64 encoding.
"""

from __future__ import annotations
import base64, binascii, time, uuid

from .errors import InvalidEncoding


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    # Strict: reject characters outside the alphabet instead of dropping them
    try:
        return base64.b64decode(s.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, AttributeError) as e:
        raise InvalidEncoding(f"not valid base64: {e}") from e


def now_ts() -> str:
    # RFC3339 / ISO 8601 in UTC, second precision
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def new_id() -> str:
    return str(uuid.uuid4())
