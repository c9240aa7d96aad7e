"""Assessment repository: per-user latest/history records in the KV store.

Key layout::

    user:<id>:profile
    user:<id>:<category>:latest
    user:<id>:<category>:history:<iso-timestamp>

Every saved value is the submitted JSON object with a ``timestamp`` field
added. Reads return the most recently written value or None.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ayush.core.storage.kv_store import KeyValueStore
from ayush.core.storage.models import AssessmentRecord

logger = logging.getLogger(__name__)

# category -> whether a history copy is kept
CATEGORIES: dict[str, bool] = {
    "dosha": True,
    "health": True,
    "lifestyle": False,
    "predictions": True,
}

HISTORY_CATEGORIES = tuple(name for name, keep in CATEGORIES.items() if keep)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


def _check_category(category: str) -> None:
    if category not in CATEGORIES:
        raise RepositoryError(
            f"Unknown category: {category!r}. Valid: {', '.join(CATEGORIES)}"
        )


class AssessmentRepository:
    """Stores assessment payloads per user and category.

    Usage::

        repo = AssessmentRepository(KeyValueStore(db, encryptor))
        record = repo.save(user_id, "dosha", {"scores": {...}, "params": {...}})
        repo.get_latest(user_id, "dosha")
        repo.get_history(user_id, "dosha")  # newest first
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def save_profile(self, user_id: str, profile: dict[str, Any]) -> None:
        self._store.set(f"user:{user_id}:profile", profile)

    def get_profile(self, user_id: str) -> dict[str, Any] | None:
        return self._store.get(f"user:{user_id}:profile")

    # ------------------------------------------------------------------
    # Assessments
    # ------------------------------------------------------------------

    def save(
        self,
        user_id: str,
        category: str,
        payload: dict[str, Any],
        *,
        timestamp: str | None = None,
    ) -> AssessmentRecord:
        """Store ``payload`` as the latest value and, where kept, in history.

        Args:
            user_id: Owner of the record.
            category: One of CATEGORIES.
            payload: JSON object to store verbatim.
            timestamp: ISO 8601 override; defaults to now (UTC).

        Raises:
            RepositoryError: For unknown categories or non-object payloads.
        """
        _check_category(category)
        if not isinstance(payload, dict):
            raise RepositoryError(
                f"Payload for {category!r} must be a JSON object, got {type(payload).__name__}"
            )

        record = AssessmentRecord(
            category=category,
            timestamp=timestamp or self._now_iso(),
            payload=payload,
        )
        stored = record.as_stored()
        self._store.set(f"user:{user_id}:{category}:latest", stored)
        if CATEGORIES[category]:
            self._store.set(f"user:{user_id}:{category}:history:{record.timestamp}", stored)

        logger.info("Saved %s record for user %s at %s", category, user_id, record.timestamp)
        return record

    def get_latest(self, user_id: str, category: str) -> dict[str, Any] | None:
        """Most recently saved value for a category, or None."""
        _check_category(category)
        return self._store.get(f"user:{user_id}:{category}:latest")

    def get_history(
        self, user_id: str, category: str, *, limit: int | None = None
    ) -> list[dict[str, Any]]:
        """All history entries for a category, newest first.

        Raises:
            RepositoryError: If the category keeps no history.
        """
        _check_category(category)
        if not CATEGORIES[category]:
            raise RepositoryError(
                f"Category {category!r} keeps no history. "
                f"Valid: {', '.join(HISTORY_CATEGORIES)}"
            )

        entries = self._store.get_by_prefix(f"user:{user_id}:{category}:history:")
        values = [e.value for e in entries]
        values.sort(key=lambda v: str(v.get("timestamp", "")), reverse=True)
        return values[:limit] if limit is not None else values

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_user_data(self, user_id: str) -> int:
        """Remove every key belonging to a user. Returns the number removed."""
        count = self._store.delete_by_prefix(f"user:{user_id}:")
        logger.warning("Deleted all stored data for user %s (%d keys)", user_id, count)
        return count
