from __future__ import annotations
from typing import Any, Dict

from sealbox_core.errors import (  # noqa: F401  re-exported for adapters
    TransportError,
    TransportTransientError,
    TransportPermanentError,
)
from sealbox_core.storage.models import RemoteKey


class BaseTransport:
    """
    Mailbox transport contract.

    Byte fields cross this boundary as raw bytes; adapters handle the
    base64 wire encoding. ``pull`` returns the raw newline-delimited
    response body so the caller decodes each entry independently.
    """
    name: str = "base"

    def register_key(self, identifier: str, key_version: int, public_key: bytes) -> None:
        raise NotImplementedError

    def fetch_key(self, identifier: str) -> RemoteKey:
        """Raises RecipientUnknown when no key is registered."""
        raise NotImplementedError

    def push(self, identifier: str, key_version: int, blob: bytes) -> None:
        raise NotImplementedError

    def pull(self, identifier: str) -> str:
        raise NotImplementedError

    def healthz(self) -> Dict[str, Any]:
        return {"status": "ok", "transport": self.name}

    def close(self) -> None:
        return
