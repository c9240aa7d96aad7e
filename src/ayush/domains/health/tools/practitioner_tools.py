"""MCP tool for practitioner recommendations."""

from __future__ import annotations

import logging
import math
import time
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from ayush.domains.health.domain_logic.assessment_models import (
    AssessmentInputError,
    ConstitutionProfile,
)
from ayush.domains.health.domain_logic.profile_calculator import dominant_dosha
from ayush.domains.health.tools.services import ToolServices, respond

if TYPE_CHECKING:
    from ayush.domains.health.domain_logic.practitioner_directory import PractitionerDirectory

logger = logging.getLogger(__name__)


def _validate_location(location: dict[str, Any] | None) -> dict[str, float] | None:
    """Accept ``{"lat": .., "lng": ..}`` with finite coordinates, or nothing."""
    if not location:
        return None
    try:
        lat = float(location["lat"])
        lng = float(location["lng"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AssessmentInputError("location must be an object with numeric lat and lng") from exc
    if not (math.isfinite(lat) and math.isfinite(lng)) or abs(lat) > 90 or abs(lng) > 180:
        raise AssessmentInputError("location coordinates are out of range")
    return {"lat": lat, "lng": lng}


def register_practitioner_tools(
    mcp: FastMCP,
    services: ToolServices,
    directory: PractitionerDirectory,
) -> None:
    """Register the practitioner lookup tool on the MCP server."""

    @mcp.tool
    async def nearby_practitioners(
        ctx: Context,
        access_token: str,
        dosha_profile: str = "",
        conditions: list[str] | None = None,
        location: dict[str, Any] | None = None,
    ) -> str:
        """Suggest AYUSH practitioners for your constitution.

        This is a sample directory, not a live search: distances are shown
        only when a location is given.

        Args:
            access_token: Token from sign_in.
            dosha_profile: 'Vata', 'Pitta' or 'Kapha'. Defaults to the dominant
                dosha of your latest stored assessment.
            conditions: Predicted condition names, echoed back for display.
            location: Optional {"lat": .., "lng": ..}.
        """
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("nearby_practitioners", start)

        tool_input = {"dosha_profile": dosha_profile, "conditions": conditions}
        try:
            coords = _validate_location(location)
            if not dosha_profile:
                stored = services.repository.get_latest(user.id, "dosha")
                if stored and "scores" in stored:
                    dosha_profile = dominant_dosha(ConstitutionProfile.from_dict(stored["scores"]))
        except AssessmentInputError as exc:
            return services.failure(
                "nearby_practitioners", tool_input, start, exc, user_id=user.id
            )

        practitioners = directory.recommend(dosha_profile or None, coords)
        logger.info(
            "Practitioners for user %s (dosha=%s, located=%s): %d",
            user.id, dosha_profile or "unknown", coords is not None, len(practitioners),
        )
        services.record("nearby_practitioners", tool_input, start, user_id=user.id)
        return respond(
            "ok",
            dosha_profile=dosha_profile or None,
            conditions=conditions or [],
            practitioners=[p.to_dict() for p in practitioners],
        )
