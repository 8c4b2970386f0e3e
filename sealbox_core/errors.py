"""
sealbox_core.errors
-------------------
Exception taxonomy shared by every Sealbox component.

Callers of MailboxClient operations catch these by type to render a
precise message. Per-entry failures inside a pull batch never reach the
caller; see sealbox_core.sealing.open_batch.
"""

from __future__ import annotations
from typing import Optional


class SealboxError(Exception):
    pass


# --------- Codec ----------
class InvalidEncoding(SealboxError):
    """Input is not valid base64."""


class MalformedBlob(SealboxError):
    """Blob is not longer than the fixed encapsulation length."""


# --------- Crypto ----------
class InvalidKey(SealboxError):
    """Serialized key has the wrong shape for the suite."""


class EncryptionFailed(SealboxError):
    pass


class DecryptionFailed(SealboxError):
    """Decapsulation or AEAD authentication failure.

    Expected for mailbox entries sealed to another key.
    """


# --------- Key lifecycle ----------
class NotFound(SealboxError):
    pass


class InvalidBundle(SealboxError):
    pass


class RecipientUnknown(SealboxError):
    def __init__(self, identifier: str):
        super().__init__(f"no public key registered for {identifier!r}")
        self.identifier = identifier


# --------- Transport ----------
class TransportError(SealboxError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TransportTransientError(TransportError):
    pass


class TransportPermanentError(TransportError):
    pass
