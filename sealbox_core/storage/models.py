# sealbox_core/storage/models.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional
import json

from sealbox_core.errors import InvalidBundle, InvalidEncoding
from sealbox_core.utils import b64d, b64e


@dataclass(frozen=True)
class KeyRecord:
    """
    Storage-level representation of a mailbox keypair.

    Exactly one record lives per identifier; rotation replaces it.
    Both key halves are opaque serialized suite keys.
    """
    identifier: str
    key_version: int
    public_key: bytes
    private_key: bytes

    def to_bundle(self) -> "AccessBundle":
        return AccessBundle(self.identifier, self.key_version, self.public_key, self.private_key)


@dataclass(frozen=True)
class RemoteKey:
    """Public half of a mailbox key as served by the key endpoint."""
    key_version: int
    public_key: bytes


@dataclass(frozen=True)
class AccessBundle:
    """
    Portable copy of a KeyRecord, moved between devices out of band.

    Serialized as JSON with base64 byte fields:
    ``{"identifier", "keyVersion", "publicKey", "privateKey"}``.
    """
    identifier: str
    key_version: int
    public_key: bytes
    private_key: bytes

    def to_record(self) -> KeyRecord:
        return KeyRecord(self.identifier, self.key_version, self.public_key, self.private_key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "keyVersion": self.key_version,
            "publicKey": b64e(self.public_key),
            "privateKey": b64e(self.private_key),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: Any, identifier: Optional[str] = None) -> "AccessBundle":
        """
        Validate an untrusted document and build a bundle from it.

        ``identifier`` is a fallback used only when the document does not
        carry one (e.g. recovered from the bundle filename). A missing
        ``keyVersion`` is read as 0. Anything else missing or malformed
        raises InvalidBundle.
        """
        if not isinstance(data, dict):
            raise InvalidBundle("bundle must be a JSON object")

        ident = data.get("identifier") or identifier
        if not isinstance(ident, str) or not ident.strip():
            raise InvalidBundle("missing identifier")

        version = data.get("keyVersion", 0)
        if isinstance(version, bool) or not isinstance(version, int) or version < 0:
            raise InvalidBundle("keyVersion must be a non-negative integer")

        keys = {}
        for name in ("publicKey", "privateKey"):
            value = data.get(name)
            if not isinstance(value, str) or not value:
                raise InvalidBundle(f"missing {name}")
            try:
                keys[name] = b64d(value)
            except InvalidEncoding as e:
                raise InvalidBundle(f"{name} is not valid base64") from e
            if not keys[name]:
                raise InvalidBundle(f"{name} is empty")

        return cls(ident.strip(), version, keys["publicKey"], keys["privateKey"])

    @classmethod
    def from_json(cls, text: str, identifier: Optional[str] = None) -> "AccessBundle":
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidBundle(f"bundle is not valid JSON: {e}") from e
        return cls.from_dict(data, identifier=identifier)
