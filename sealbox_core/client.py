"""
sealbox_core.client
-------------------
MailboxClient ties the KeyStore, the cipher suite and a transport
together into the three mailbox operations:

- publish: make sure a keypair exists and register its public half
- push:    seal a message to another identifier's registered key
- pull:    fetch the mailbox and decrypt every entry meant for us

Steps inside an operation run strictly in order and nothing is retried.
RecipientUnknown, TransportError and InvalidBundle reach the caller;
undecryptable mailbox entries do not.
"""

from __future__ import annotations
from typing import List, Optional, Union

from .codec import decode_batch
from .crypto import SUITE, Suite, compute_pubkey_fingerprint
from .keystore import KeyStore
from .logger import get_logger
from .sealing import open_batch, seal
from .storage import AccessBundle, KeyRecord, StorageProvider, load_storage_provider
from .transport import BaseTransport, transport_factory

log = get_logger("Sealbox.Client")


class MailboxClient:
    def __init__(self, keystore: KeyStore, transport: BaseTransport, suite: Suite = SUITE):
        self.keystore = keystore
        self.transport = transport
        self.suite = suite

    @classmethod
    def from_env(cls, config: Optional[dict] = None) -> "MailboxClient":
        """Build a client from SEALBOX_* environment variables, overridable by ``config``."""
        config = config or {}
        storage: StorageProvider = load_storage_provider(config)
        return cls(KeyStore(storage), transport_factory(config))

    def _resolve(self, identifier: Optional[str]) -> str:
        return identifier or self.keystore.active_identifier()

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------
    def publish(self, identifier: Optional[str] = None) -> KeyRecord:
        rec = self.keystore.load_or_create(self._resolve(identifier))
        self.transport.register_key(rec.identifier, rec.key_version, rec.public_key)
        log.info(
            f"[PUBLISH] identifier={rec.identifier} version={rec.key_version} "
            f"fpr={compute_pubkey_fingerprint(rec.public_key)}"
        )
        return rec

    def rotate_and_publish(self, identifier: Optional[str] = None) -> KeyRecord:
        rec = self.keystore.rotate(self._resolve(identifier))
        self.transport.register_key(rec.identifier, rec.key_version, rec.public_key)
        log.info(f"[PUBLISH] rotated identifier={rec.identifier} version={rec.key_version}")
        return rec

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------
    def push(self, identifier: str, message: Union[str, bytes]) -> None:
        plaintext = message.encode("utf-8") if isinstance(message, str) else bytes(message)
        remote = self.transport.fetch_key(identifier)
        pub = self.suite.deserialize_public_key(remote.public_key)
        blob = seal(plaintext, pub, self.suite)
        self.transport.push(identifier, remote.key_version, blob)
        log.info(f"[PUSH] identifier={identifier} version={remote.key_version} bytes={len(blob)}")

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------
    def pull_bytes(self, identifier: Optional[str] = None) -> List[bytes]:
        rec = self.keystore.load_or_create(self._resolve(identifier))
        priv = self.suite.deserialize_private_key(rec.private_key)
        body = self.transport.pull(rec.identifier)
        messages = list(open_batch(decode_batch(body), priv, self.suite))
        log.info(f"[PULL] identifier={rec.identifier} messages={len(messages)}")
        return messages

    def pull(self, identifier: Optional[str] = None) -> List[str]:
        out = []
        for idx, pt in enumerate(self.pull_bytes(identifier)):
            try:
                out.append(pt.decode("utf-8"))
            except UnicodeDecodeError:
                log.debug(f"[PULL] message {idx} is not UTF-8, skipping")
        return out

    # ------------------------------------------------------------------
    # Access bundles
    # ------------------------------------------------------------------
    def export_bundle(self, identifier: Optional[str] = None) -> AccessBundle:
        return self.keystore.export(self._resolve(identifier))

    def import_bundle(self, bundle: AccessBundle) -> KeyRecord:
        rec = self.keystore.import_bundle(bundle)
        self.keystore.set_active_identifier(rec.identifier)
        return rec

    def close(self) -> None:
        self.transport.close()
        self.keystore.storage.close()
