"""
sealbox_core.keystore
---------------------
Per-identifier keypair lifecycle: generate, persist, reload, rotate,
export and import.

Generation is serialized per identifier. Racing ``load_or_create`` calls
for the same identifier produce exactly one persisted keypair and every
caller gets that record back.
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional, Union
import re, threading

from .crypto import SUITE, Suite, compute_pubkey_fingerprint
from .errors import DecryptionFailed, InvalidBundle, InvalidKey, NotFound
from .logger import get_logger
from .storage import AccessBundle, KeyRecord, StorageProvider
from .utils import new_id

log = get_logger("Sealbox.KeyStore")

ACTIVE_IDENTIFIER = "active_identifier"
BUNDLE_FILENAME = "sealbox-keypair-{identifier}.json"
_BUNDLE_FILENAME_RE = re.compile(r"^sealbox-keypair-(.+)\.json$", re.IGNORECASE)


def bundle_filename(identifier: str) -> str:
    return BUNDLE_FILENAME.format(identifier=identifier)


def identifier_from_filename(filename: str) -> Optional[str]:
    m = _BUNDLE_FILENAME_RE.match(Path(filename).name)
    return m.group(1) if m else None


class KeyStore:
    def __init__(self, storage: StorageProvider, suite: Suite = SUITE):
        self.storage = storage
        self.suite = suite
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, identifier: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(identifier)
            if lock is None:
                lock = self._locks[identifier] = threading.Lock()
            return lock

    def _generate(self, identifier: str, key_version: int) -> KeyRecord:
        pub, priv = self.suite.generate_key_pair()
        rec = KeyRecord(
            identifier=identifier,
            key_version=key_version,
            public_key=self.suite.serialize_public_key(pub),
            private_key=self.suite.serialize_private_key(priv),
        )
        self.storage.upsert_key(rec)
        log.info(
            f"[KEYS] generated identifier={identifier} version={key_version} "
            f"fpr={compute_pubkey_fingerprint(rec.public_key)}"
        )
        return rec

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def get(self, identifier: str) -> Optional[KeyRecord]:
        return self.storage.get_key(identifier)

    def load_or_create(self, identifier: str) -> KeyRecord:
        rec = self.storage.get_key(identifier)
        if rec is not None:
            return rec
        with self._lock_for(identifier):
            # another caller may have generated while we waited
            rec = self.storage.get_key(identifier)
            if rec is not None:
                return rec
            return self._generate(identifier, 0)

    def rotate(self, identifier: str) -> KeyRecord:
        """
        Replace the keypair with a fresh one at the next key version.

        Messages sealed to the old key and not yet pulled become
        undecryptable; blobs do not record which version sealed them.
        """
        with self._lock_for(identifier):
            current = self.storage.get_key(identifier)
            version = current.key_version + 1 if current else 0
            return self._generate(identifier, version)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------
    def export(self, identifier: str) -> AccessBundle:
        rec = self.storage.get_key(identifier)
        if rec is None:
            raise NotFound(f"no key record for {identifier!r}")
        return rec.to_bundle()

    def import_bundle(self, bundle: AccessBundle) -> KeyRecord:
        """Install a bundle, replacing any existing record (last import wins)."""
        try:
            pub = self.suite.deserialize_public_key(bundle.public_key)
            priv = self.suite.deserialize_private_key(bundle.private_key)
        except InvalidKey as e:
            raise InvalidBundle(f"bundle keys are not valid suite keys: {e}") from e
        if self.suite.serialize_public_key(priv.public_key()) != self.suite.serialize_public_key(pub):
            raise InvalidBundle("publicKey does not belong to privateKey")
        # ML-KEM decapsulation never fails outright, so a damaged dk_pke only
        # shows up as a key that cannot open what was sealed to it
        sender = self.suite.new_sender(pub)
        check_ct = sender.seal(b"sealbox-import-check")
        try:
            self.suite.new_recipient(priv, sender.encapsulation).open(check_ct)
        except DecryptionFailed as e:
            raise InvalidBundle("privateKey cannot open messages sealed to publicKey") from e

        rec = bundle.to_record()
        with self._lock_for(rec.identifier):
            self.storage.upsert_key(rec)
        log.info(
            f"[KEYS] imported identifier={rec.identifier} version={rec.key_version} "
            f"fpr={compute_pubkey_fingerprint(rec.public_key)}"
        )
        return rec

    def write_bundle_file(self, identifier: str, directory: Union[str, Path] = ".") -> Path:
        bundle = self.export(identifier)
        path = Path(directory) / bundle_filename(identifier)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(bundle.to_json(), encoding="utf-8")
        log.info(f"[KEYS] exported identifier={identifier} path={path}")
        return path

    def read_bundle_file(self, path: Union[str, Path]) -> AccessBundle:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise InvalidBundle(f"cannot read bundle file {path}: {e}") from e
        return AccessBundle.from_json(text, identifier=identifier_from_filename(path.name))

    # ------------------------------------------------------------------
    # Active identifier
    # ------------------------------------------------------------------
    def active_identifier(self, create: bool = True) -> Optional[str]:
        """The identifier used to prefill operations; a random UUID on first use."""
        ident = self.storage.get_setting(ACTIVE_IDENTIFIER)
        if ident is None and create:
            ident = new_id()
            self.storage.set_setting(ACTIVE_IDENTIFIER, ident)
            log.info(f"[KEYS] new active identifier {ident}")
        return ident

    def set_active_identifier(self, identifier: str) -> None:
        self.storage.set_setting(ACTIVE_IDENTIFIER, identifier)
