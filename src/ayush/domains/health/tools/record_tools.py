"""MCP tools for raw record storage: save/get per category and history.

These mirror the web client's REST resources one-to-one. Payloads are stored
verbatim with a ``timestamp`` added; no scoring happens here (see
assessment_tools for the computing variants).
"""

from __future__ import annotations

import time
from typing import Any

from fastmcp import Context, FastMCP

from ayush.core.storage.repository import RepositoryError
from ayush.domains.health.tools.services import ToolServices, respond

# category -> (save tool, get tool, response field, human label)
_RECORD_TOOLS = {
    "dosha": ("save_dosha_assessment", "get_dosha_assessment", "assessment", "dosha assessment"),
    "health": ("save_health_assessment", "get_health_assessment", "assessment", "health assessment"),
    "lifestyle": ("save_lifestyle", "get_lifestyle", "lifestyle", "lifestyle answers"),
    "predictions": ("save_predictions", "get_predictions", "predictions", "risk predictions"),
}


def _register_category(
    mcp: FastMCP,
    services: ToolServices,
    category: str,
    save_name: str,
    get_name: str,
    field_name: str,
    label: str,
) -> None:
    async def save_record(ctx: Context, access_token: str, payload: dict[str, Any]) -> str:
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized(save_name, start)
        try:
            record = services.repository.save(user.id, category, payload)
        except RepositoryError as exc:
            return services.failure(save_name, payload, start, exc, user_id=user.id)

        services.record(save_name, payload, start, user_id=user.id)
        return respond("saved", timestamp=record.timestamp, **{field_name: record.as_stored()})

    async def get_record(ctx: Context, access_token: str) -> str:
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized(get_name, start)
        value = services.repository.get_latest(user.id, category)
        services.record(get_name, None, start, user_id=user.id)
        return respond("ok", **{field_name: value})

    mcp.tool(
        save_record,
        name=save_name,
        description=f"Store your latest {label} (kept verbatim, timestamped).",
    )
    mcp.tool(
        get_record,
        name=get_name,
        description=f"Return your most recently stored {label}, or null.",
    )


def register_record_tools(mcp: FastMCP, services: ToolServices) -> None:
    """Register the per-category save/get tools and the history tool."""
    for category, (save_name, get_name, field_name, label) in _RECORD_TOOLS.items():
        _register_category(mcp, services, category, save_name, get_name, field_name, label)

    @mcp.tool
    async def get_history(ctx: Context, access_token: str, category: str, limit: int = 50) -> str:
        """List past records of one category, newest first.

        Args:
            access_token: Token from sign_in.
            category: 'dosha', 'health' or 'predictions'.
            limit: Maximum number of entries to return.
        """
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("get_history", start)
        if limit < 1:
            return services.failure(
                "get_history", {"category": category}, start,
                ValueError("limit must be at least 1"), user_id=user.id,
            )
        try:
            history = services.repository.get_history(user.id, category, limit=limit)
        except RepositoryError as exc:
            return services.failure(
                "get_history", {"category": category}, start, exc, user_id=user.id
            )

        services.record("get_history", {"category": category}, start, user_id=user.id)
        return respond("ok", category=category, count=len(history), history=history)

