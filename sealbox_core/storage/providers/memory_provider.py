from typing import Optional, Dict, List
from sealbox_core.storage.models import KeyRecord
from sealbox_core.storage.provider import StorageProvider


class InMemoryStorage(StorageProvider):
    def __init__(self):
        self.keys: Dict[str, KeyRecord] = {}
        self.settings: Dict[str, str] = {}

    def upsert_key(self, rec: KeyRecord):
        self.keys[rec.identifier] = rec

    def get_key(self, identifier: str) -> Optional[KeyRecord]:
        return self.keys.get(identifier)

    def delete_key(self, identifier: str):
        self.keys.pop(identifier, None)

    def list_keys(self) -> List[str]:
        return sorted(self.keys)

    # settings
    def get_setting(self, name: str) -> Optional[str]:
        return self.settings.get(name)

    def set_setting(self, name: str, value: str):
        self.settings[name] = value
