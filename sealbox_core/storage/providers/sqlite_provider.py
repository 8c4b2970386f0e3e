from __future__ import annotations
from typing import Optional, List
import sqlite3, os, threading
from sealbox_core.storage.provider import StorageProvider
from sealbox_core.storage.models import KeyRecord
from sealbox_core.utils import now_ts


class SQLiteStorage(StorageProvider):
    def __init__(self, path="db/sealbox_state.db"):
        # If no directory, default to current working directory
        dir_path = os.path.dirname(path) or "."
        os.makedirs(dir_path, exist_ok=True)
        self.db = sqlite3.connect(path, check_same_thread=False)
        self._write_lock = threading.Lock()

        self._init()

    def _init(self) -> None:
        c = self.db.cursor()

        c.execute("""CREATE TABLE IF NOT EXISTS keyring(
            identifier TEXT PRIMARY KEY,
            key_version INTEGER NOT NULL,
            public_key BLOB NOT NULL,
            private_key BLOB NOT NULL,
            updated_at TEXT NOT NULL
        )""")
        c.execute("""CREATE TABLE IF NOT EXISTS settings(
            name TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )""")

        self.db.commit()

    def upsert_key(self, rec: KeyRecord) -> None:
        with self._write_lock:
            self.db.execute(
                "INSERT INTO keyring(identifier,key_version,public_key,private_key,updated_at) VALUES(?,?,?,?,?) "
                "ON CONFLICT(identifier) DO UPDATE SET key_version=excluded.key_version, "
                "public_key=excluded.public_key, private_key=excluded.private_key, updated_at=excluded.updated_at",
                (rec.identifier, rec.key_version, rec.public_key, rec.private_key, now_ts())
            )
            self.db.commit()

    def get_key(self, identifier: str) -> Optional[KeyRecord]:
        cur = self.db.execute(
            "SELECT identifier,key_version,public_key,private_key FROM keyring WHERE identifier=?",
            (identifier,)
        )
        row = cur.fetchone()
        if not row: return None
        ident, version, pub, priv = row
        return KeyRecord(ident, int(version), bytes(pub), bytes(priv))

    def delete_key(self, identifier: str) -> None:
        with self._write_lock:
            self.db.execute("DELETE FROM keyring WHERE identifier=?", (identifier,))
            self.db.commit()

    def list_keys(self) -> List[str]:
        cur = self.db.execute("SELECT identifier FROM keyring ORDER BY identifier")
        return [r[0] for r in cur.fetchall()]

    # --- settings ---

    def get_setting(self, name: str) -> Optional[str]:
        cur = self.db.execute("SELECT value FROM settings WHERE name=?", (name,))
        row = cur.fetchone()
        return row[0] if row else None

    def set_setting(self, name: str, value: str) -> None:
        with self._write_lock:
            self.db.execute(
                "INSERT INTO settings(name,value) VALUES(?,?) "
                "ON CONFLICT(name) DO UPDATE SET value=excluded.value",
                (name, value)
            )
            self.db.commit()

    def close(self):
        self.db.close()
