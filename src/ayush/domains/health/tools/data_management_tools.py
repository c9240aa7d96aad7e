"""MCP tools for the audit trail and deletion of a user's stored data."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone

from fastmcp import Context, FastMCP

from ayush.domains.health.tools.services import ToolServices, respond

logger = logging.getLogger(__name__)


def register_data_management_tools(mcp: FastMCP, services: ToolServices) -> None:
    """Register audit and deletion tools on the MCP server."""

    @mcp.tool
    async def audit_summary(ctx: Context, access_token: str, days: int = 30) -> str:
        """View your recent tool calls. No questionnaire answers are kept in the trail.

        Args:
            access_token: Token from sign_in.
            days: Number of days to look back (default: 30).
        """
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("audit_summary", start)
        if services.audit_logger is None:
            return respond("unavailable", message="Audit logging is disabled.")

        if days < 1:
            return services.failure(
                "audit_summary", {"days": days}, start,
                ValueError("days must be at least 1"), user_id=user.id,
            )
        try:
            since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()
        except OverflowError:
            return services.failure(
                "audit_summary", {"days": days}, start,
                ValueError(f"days is too large: {days}"), user_id=user.id,
            )

        total = services.audit_logger.count_events(user_id=user.id, since=since)
        events = services.audit_logger.get_events(user_id=user.id, since=since, limit=20)

        services.record("audit_summary", {"days": days}, start, user_id=user.id)
        return respond(
            "ok",
            period_days=days,
            total_events=total,
            recent_events=[
                {
                    "timestamp": e.get("timestamp"),
                    "action": e.get("action"),
                    "tool_name": e.get("tool_name"),
                    "status": e.get("status"),
                    "duration_ms": e.get("duration_ms"),
                }
                for e in events
            ],
        )

    @mcp.tool
    async def delete_my_data(ctx: Context, access_token: str, confirm: str = "") -> str:
        """Permanently delete your stored profile, assessments and history.

        Args:
            access_token: Token from sign_in.
            confirm: Must be exactly 'DELETE_ALL' to proceed.
        """
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("delete_my_data", start)
        if confirm != "DELETE_ALL":
            return respond(
                "cancelled",
                message=(
                    "To delete all of your data, call this tool with "
                    "confirm='DELETE_ALL'. This action cannot be undone."
                ),
            )

        count = services.repository.delete_user_data(user.id)
        if services.audit_logger is not None:
            services.audit_logger.log_data_delete(
                tool_name="delete_my_data", user_id=user.id, count=count
            )
        services.record("delete_my_data", None, start, user_id=user.id)
        return respond("all_deleted", records_deleted=count)
