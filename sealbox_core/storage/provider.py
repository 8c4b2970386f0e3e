from __future__ import annotations
from typing import List, Optional
from sealbox_core.storage.models import KeyRecord


class StorageProvider:
    """
    Local key-value store owned by the KeyStore.

    Holds one KeyRecord per identifier plus small named settings (the
    active identifier). No network I/O.
    """
    def upsert_key(self, rec: KeyRecord) -> None: ...
    def get_key(self, identifier: str) -> Optional[KeyRecord]: ...
    def delete_key(self, identifier: str) -> None: ...
    def list_keys(self) -> List[str]: ...
    def get_setting(self, name: str) -> Optional[str]: ...
    def set_setting(self, name: str, value: str) -> None: ...

    def close(self) -> None:
        return
