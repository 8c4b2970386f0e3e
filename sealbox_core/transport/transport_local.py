# sealbox_core/transport/transport_local.py
from __future__ import annotations
from typing import Dict, List
import threading

from sealbox_core.errors import RecipientUnknown
from sealbox_core.logger import get_logger
from sealbox_core.storage.models import RemoteKey
from sealbox_core.transport.transport_base import BaseTransport, TransportPermanentError
from sealbox_core.utils import b64e

log = get_logger("Sealbox.Transport.Local")

DEFAULT_MAX_BLOB_BYTES = 64 * 1024


class LocalTransport(BaseTransport):
    """
    In-process mailbox server for tests and single-host use.

    Mirrors the server's behaviour: registering a key replaces the
    previous one, pushes to unregistered identifiers are refused, blobs
    over ``max_blob_bytes`` are refused, and pull returns every queued
    entry in arrival order without deleting anything.
    """
    name = "local"

    def __init__(self, max_blob_bytes: int = DEFAULT_MAX_BLOB_BYTES):
        self.max_blob_bytes = max_blob_bytes
        self.keys: Dict[str, RemoteKey] = {}
        self.mailboxes: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def register_key(self, identifier: str, key_version: int, public_key: bytes) -> None:
        with self._lock:
            self.keys[identifier] = RemoteKey(key_version=key_version, public_key=bytes(public_key))
        log.info(f"[LOCAL KEY] identifier={identifier} version={key_version}")

    def fetch_key(self, identifier: str) -> RemoteKey:
        rec = self.keys.get(identifier)
        if rec is None:
            raise RecipientUnknown(identifier)
        return rec

    def push(self, identifier: str, key_version: int, blob: bytes) -> None:
        if len(blob) > self.max_blob_bytes:
            raise TransportPermanentError(
                f"blob too large: {len(blob)} > {self.max_blob_bytes}", status=413
            )
        with self._lock:
            if identifier not in self.keys:
                raise RecipientUnknown(identifier)
            self.mailboxes.setdefault(identifier, []).append(b64e(blob))
        log.info(f"[LOCAL PUSH] identifier={identifier} version={key_version} bytes={len(blob)}")

    def pull(self, identifier: str) -> str:
        with self._lock:
            entries = list(self.mailboxes.get(identifier, []))
        log.info(f"[LOCAL PULL] identifier={identifier} entries={len(entries)}")
        return "".join(line + "\n" for line in entries)

    def inject(self, identifier: str, line: str) -> None:
        """Queue a raw response line as-is, bypassing push validation."""
        with self._lock:
            self.mailboxes.setdefault(identifier, []).append(line)
