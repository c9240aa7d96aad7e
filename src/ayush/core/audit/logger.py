"""Audit trail of tool calls, kept free of questionnaire data.

Each tool invocation becomes one ``audit_log`` row: who called what, when, how
long it took and whether it succeeded. Arguments are reduced to a SHA-256
digest of their canonical JSON, with passwords and access tokens removed
first, so the trail can prove two calls were identical without storing what
was asked.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ayush.core.storage.database import HealthDatabase

logger = logging.getLogger(__name__)

# Never part of the digest input
_SECRET_ARGUMENTS = frozenset({"password", "access_token"})

_COLUMNS = (
    "id", "timestamp", "action", "tool_name", "tool_input_hash", "user_id",
    "duration_ms", "status", "error_type", "metadata_json",
)


def _hash_input(data: Any) -> str:
    """Hex SHA-256 of ``data`` as sorted, compact JSON; "" if not serializable."""
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    except (TypeError, ValueError):
        return ""
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _where(**criteria: Any) -> tuple[str, list[Any]]:
    """Build a WHERE clause from non-empty criteria. ``since`` is a lower bound."""
    clauses: list[str] = []
    params: list[Any] = []
    for name, value in criteria.items():
        if not value:
            continue
        clauses.append("timestamp >= ?" if name == "since" else f"{name} = ?")
        params.append(value)
    return (" WHERE " + " AND ".join(clauses) if clauses else ""), params


@dataclass
class AuditEvent:
    """One row of the audit trail."""

    action: str                          # 'tool_invocation' | 'data_delete'
    tool_name: str = ""
    tool_input_hash: str = ""
    user_id: str | None = None
    duration_ms: float | None = None
    status: str = "success"              # 'success' | 'failure' | 'unauthorized'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_row(self, event_id: str, timestamp: str) -> tuple[Any, ...]:
        return (
            event_id,
            timestamp,
            self.action,
            self.tool_name or None,
            self.tool_input_hash or None,
            self.user_id,
            self.duration_ms,
            self.status,
            self.error_type,
            json.dumps(self.metadata, separators=(",", ":")) if self.metadata else None,
        )


class AuditLogger:
    """Writes and queries the ``audit_log`` table.

    Writing is best effort: a failed insert is logged and reported as an
    empty event id, and the tool call that triggered it still completes.
    """

    def __init__(self, database: HealthDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        """Store ``event``. Returns its id, or "" if the write failed."""
        event_id = str(uuid.uuid4())
        row = event.to_row(event_id, datetime.now(timezone.utc).isoformat())
        placeholders = ", ".join("?" for _ in _COLUMNS)
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    f"INSERT INTO audit_log ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                    row,
                )
        except Exception:
            logger.exception("Audit write failed for %s/%s", event.action, event.tool_name)
            return ""
        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: dict[str, Any] | None = None,
        *,
        user_id: str | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Record one tool invocation."""
        digest = ""
        if tool_input:
            digest = _hash_input(
                {k: v for k, v in tool_input.items() if k not in _SECRET_ARGUMENTS}
            )
        return self.log_event(AuditEvent(
            action="tool_invocation",
            tool_name=tool_name,
            tool_input_hash=digest,
            user_id=user_id,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    def log_data_delete(self, *, tool_name: str, user_id: str, count: int) -> str:
        """Record that a user's stored data was erased."""
        return self.log_event(AuditEvent(
            action="data_delete",
            tool_name=tool_name,
            user_id=user_id,
            metadata={"records_deleted": count},
        ))

    def get_events(
        self,
        *,
        user_id: str | None = None,
        action: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Matching events, newest first."""
        where, params = _where(user_id=user_id, action=action, since=since)
        rows = self._db.connection.execute(
            f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?",
            [*params, limit],
        ).fetchall()
        return [dict(row) for row in rows]

    def count_events(self, *, user_id: str | None = None, since: str | None = None) -> int:
        where, params = _where(user_id=user_id, since=since)
        row = self._db.connection.execute(
            f"SELECT COUNT(*) FROM audit_log{where}", params
        ).fetchone()
        return row[0]
