"""
Sealbox Core Package
====================
Sealed mailboxes: register a public key under an identifier, let anyone
seal messages to it, pull and decrypt them on the owning device.

Provides:
- Hybrid X25519 + ML-KEM-768 cipher suite with HKDF-SHA256 / AES-128-GCM
- Sealed blob wire format and batch decoding
- Per-identifier key lifecycle over pluggable local storage
- MailboxClient over HTTP or in-process transports
"""

from .client import MailboxClient
from .crypto import SUITE, Suite
from .keystore import KeyStore
from .sealing import open_batch, seal

__all__ = ["MailboxClient", "KeyStore", "SUITE", "Suite", "seal", "open_batch"]
