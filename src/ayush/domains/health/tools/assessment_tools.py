"""MCP tools that run the scoring engine and persist its results.

``assess_constitution`` covers the first questionnaire (dosha profile);
``assess_lifestyle`` covers the second one and produces risk predictions plus
the lifestyle risk score. Both store their inputs and outputs under the same
categories the raw record tools use, so ``get_*`` and ``get_history`` see them.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastmcp import Context, FastMCP

from ayush.domains.health.domain_logic.assessment_models import (
    AssessmentInputError,
    ConstitutionProfile,
    HealthAttributes,
    LifestyleAttributes,
)
from ayush.domains.health.domain_logic.lifestyle_risk import score_lifestyle_risk
from ayush.domains.health.domain_logic.profile_calculator import (
    compute_profile,
    dominant_dosha,
    dosha_description,
)
from ayush.domains.health.domain_logic.risk_predictor import predict_risks
from ayush.domains.health.tools.services import ToolServices, respond

logger = logging.getLogger(__name__)


def _load_stored_assessment(
    services: ToolServices, user_id: str
) -> tuple[HealthAttributes, ConstitutionProfile]:
    """Rehydrate the latest constitution assessment from storage.

    Raises:
        AssessmentInputError: If none is stored or the stored data is invalid.
    """
    health = services.repository.get_latest(user_id, "health")
    dosha = services.repository.get_latest(user_id, "dosha")
    if not health or not dosha or "params" not in health or "scores" not in dosha:
        raise AssessmentInputError(
            "No constitution assessment on record. Run assess_constitution first "
            "or pass health_attributes."
        )
    return HealthAttributes.from_dict(health["params"]), ConstitutionProfile.from_dict(dosha["scores"])


def register_assessment_tools(mcp: FastMCP, services: ToolServices) -> None:
    """Register the scoring tools on the MCP server."""

    @mcp.tool
    async def assess_constitution(
        ctx: Context,
        access_token: str,
        health_attributes: dict[str, Any],
    ) -> str:
        """Compute your dosha profile from the health questionnaire and save it.

        Args:
            access_token: Token from sign_in.
            health_attributes: age, weight (kg), height (cm), body_temperature
                (cold|neutral|warm), digestion (irregular|strong|slow),
                sleep_pattern (light|moderate|deep), energy_level
                (variable|high|steady), skin_type (dry|oily|normal),
                stress_level (high|moderate|low), exercise_frequency
                (daily|weekly|rarely). camelCase keys are accepted too.
        """
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("assess_constitution", start)

        try:
            attrs = HealthAttributes.from_dict(health_attributes)
        except AssessmentInputError as exc:
            return services.failure(
                "assess_constitution", health_attributes, start, exc, user_id=user.id
            )

        profile = compute_profile(attrs)
        dominant = dominant_dosha(profile)
        timestamp = datetime.now(timezone.utc).isoformat()

        params = attrs.to_dict()
        services.repository.save(
            user.id, "dosha", {"scores": profile.to_dict(), "params": params}, timestamp=timestamp
        )
        services.repository.save(user.id, "health", {"params": params}, timestamp=timestamp)

        services.record("assess_constitution", health_attributes, start, user_id=user.id)
        logger.info("Constitution assessed for user %s: dominant %s", user.id, dominant)
        return respond(
            "ok",
            scores=profile.to_dict(),
            dominant_dosha=dominant,
            description=dosha_description(dominant),
            timestamp=timestamp,
        )

    @mcp.tool
    async def assess_lifestyle(
        ctx: Context,
        access_token: str,
        lifestyle: dict[str, Any],
        health_attributes: dict[str, Any] | None = None,
    ) -> str:
        """Predict health risks and score lifestyle habits, then save the results.

        Uses the latest stored constitution assessment unless
        ``health_attributes`` is given, in which case the profile is
        recomputed from them.

        Args:
            access_token: Token from sign_in.
            lifestyle: diet (vegetarian|non-vegetarian|vegan), meal_timing
                (regular|irregular), water_intake (low|moderate|high),
                sleep_hours, exercise_minutes, stress_management
                (yoga|meditation|none|other), screen_time (hours/day),
                optional exercise_frequency (daily|weekly|rarely).
            health_attributes: Optional health questionnaire (see
                assess_constitution).
        """
        start = time.monotonic()
        user = services.authenticate(access_token)
        if user is None:
            return services.unauthorized("assess_lifestyle", start)

        tool_input = {"lifestyle": lifestyle, "health_attributes": health_attributes}
        try:
            habits = LifestyleAttributes.from_dict(lifestyle)
            if health_attributes is not None:
                attrs = HealthAttributes.from_dict(health_attributes)
                profile = compute_profile(attrs)
            else:
                attrs, profile = _load_stored_assessment(services, user.id)
        except AssessmentInputError as exc:
            return services.failure("assess_lifestyle", tool_input, start, exc, user_id=user.id)

        predictions = [p.to_dict() for p in predict_risks(profile, habits, attrs)]
        lifestyle_risk = score_lifestyle_risk(habits, attrs).to_dict()

        timestamp = datetime.now(timezone.utc).isoformat()
        services.repository.save(user.id, "lifestyle", habits.to_dict(), timestamp=timestamp)
        services.repository.save(
            user.id,
            "predictions",
            {"predictions": predictions, "lifestyle_risk": lifestyle_risk},
            timestamp=timestamp,
        )

        services.record("assess_lifestyle", tool_input, start, user_id=user.id)
        logger.info(
            "Lifestyle assessed for user %s: %d predictions, overall risk %s",
            user.id, len(predictions), lifestyle_risk["overall_risk"],
        )
        return respond(
            "ok",
            scores=profile.to_dict(),
            dominant_dosha=dominant_dosha(profile),
            predictions=predictions,
            lifestyle_risk=lifestyle_risk,
            timestamp=timestamp,
        )
