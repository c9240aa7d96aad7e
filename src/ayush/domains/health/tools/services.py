"""Shared plumbing for the MCP tools: authentication, audit and responses."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ayush.core.audit.logger import AuditLogger
    from ayush.core.auth.accounts import AccountService
    from ayush.core.storage.models import UserAccount
    from ayush.core.storage.repository import AssessmentRepository

logger = logging.getLogger(__name__)


def respond(status: str, **fields: Any) -> str:
    """Serialize a tool response."""
    return json.dumps({"status": status, **fields})


@dataclass
class ToolServices:
    """Collaborators every tool needs, passed explicitly at registration."""

    accounts: AccountService
    repository: AssessmentRepository
    audit_logger: AuditLogger | None = None

    def authenticate(self, access_token: str | None) -> UserAccount | None:
        return self.accounts.verify_token(access_token)

    def record(
        self,
        tool_name: str,
        tool_input: dict[str, Any] | None,
        started: float,
        *,
        user_id: str | None = None,
        status: str = "success",
        error_type: str | None = None,
    ) -> None:
        """Write one audit entry for a finished tool call."""
        if self.audit_logger is None:
            return
        self.audit_logger.log_tool_call(
            tool_name,
            tool_input,
            user_id=user_id,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
            status=status,
            error_type=error_type,
        )

    def unauthorized(self, tool_name: str, started: float) -> str:
        """Audit and answer a call without a valid access token."""
        logger.info("Rejected %s: missing or invalid access token", tool_name)
        self.record(tool_name, None, started, status="unauthorized")
        return respond("unauthorized", message="A valid access token is required.")

    def failure(
        self,
        tool_name: str,
        tool_input: dict[str, Any] | None,
        started: float,
        exc: Exception,
        *,
        user_id: str | None = None,
    ) -> str:
        """Audit and answer a rejected request (bad input, unknown category, ...)."""
        logger.info("%s rejected: %s", tool_name, exc)
        self.record(
            tool_name,
            tool_input,
            started,
            user_id=user_id,
            status="failure",
            error_type=type(exc).__name__,
        )
        return respond("error", message=str(exc))
