"""Encrypted key-value store on top of the ``kv_store`` table."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ayush.core.storage.database import HealthDatabase
from ayush.core.storage.encryption import BlobEncryptor
from ayush.core.storage.models import StoredValue

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Get/set/prefix-scan of JSON values, encrypted at rest.

    Usage::

        store = KeyValueStore(db, encryptor)
        store.set("user:42:profile", {"name": "Asha"})
        store.get("user:42:profile")          # {"name": "Asha"}
        store.get_by_prefix("user:42:")       # [StoredValue(...), ...]
    """

    def __init__(self, database: HealthDatabase, encryptor: BlobEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    def set(self, key: str, value: Any) -> None:
        """Insert or overwrite ``key``."""
        with self._db.transaction() as conn:
            conn.execute(
                """INSERT INTO kv_store (key, value_enc, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value_enc = excluded.value_enc,
                       updated_at = excluded.updated_at""",
                (key, self._enc.encrypt(value), datetime.now(timezone.utc).isoformat()),
            )
        logger.debug("kv set %s", key)

    def get(self, key: str) -> Any | None:
        """Return the decrypted value, or None if the key does not exist."""
        row = self._db.connection.execute(
            "SELECT value_enc FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return self._enc.decrypt(row["value_enc"])

    def get_by_prefix(self, prefix: str) -> list[StoredValue]:
        """Return every entry whose key starts with ``prefix``, ordered by key."""
        rows = self._db.connection.execute(
            "SELECT key, value_enc, updated_at FROM kv_store "
            "WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        ).fetchall()
        return [
            StoredValue(
                key=row["key"],
                value=self._enc.decrypt(row["value_enc"]),
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    def delete(self, key: str) -> bool:
        """Delete one key. Returns True if it existed."""
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        return cursor.rowcount > 0

    def delete_by_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``. Returns the number removed."""
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM kv_store WHERE substr(key, 1, ?) = ?",
                (len(prefix), prefix),
            )
        if cursor.rowcount:
            logger.info("Deleted %d keys under %s", cursor.rowcount, prefix)
        return cursor.rowcount

    def count(self) -> int:
        """Total number of stored keys."""
        row = self._db.connection.execute("SELECT COUNT(*) FROM kv_store").fetchone()
        return row[0]
