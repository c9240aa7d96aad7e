"""Integration tests for the AYUSH Health MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from ayush.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    """Decode the JSON text block of a tool result."""
    blocks = getattr(result, "content", result)
    return json.loads(blocks[0].text)


async def _call(client: Client, tool: str, **arguments) -> dict:
    return _payload(await client.call_tool(tool, arguments))


async def _signed_in(client: Client, email: str = "asha@example.com") -> str:
    await _call(client, "sign_up", email=email, password="s3cret!", name="Asha")
    response = await _call(client, "sign_in", email=email, password="s3cret!")
    return response["access_token"]


ALL_EXPECTED_TOOLS = [
    "health_check",
    "sign_up",
    "sign_in",
    "sign_out",
    "get_profile",
    "save_dosha_assessment",
    "get_dosha_assessment",
    "save_health_assessment",
    "get_health_assessment",
    "save_lifestyle",
    "get_lifestyle",
    "save_predictions",
    "get_predictions",
    "get_history",
    "assess_constitution",
    "assess_lifestyle",
    "nearby_practitioners",
    "audit_summary",
    "delete_my_data",
]

VATA_QUESTIONNAIRE = {
    "age": 29,
    "weight": 58,
    "height": 165,
    "bodyTemperature": "cold",
    "digestion": "irregular",
    "sleepPattern": "light",
    "energyLevel": "variable",
    "skinType": "dry",
    "stressLevel": "high",
    "exerciseFrequency": "weekly",
}

LIFESTYLE = {
    "diet": "vegetarian",
    "mealTiming": "irregular",
    "waterIntake": "moderate",
    "sleepHours": 5,
    "exerciseMinutes": 10,
    "stressManagement": "none",
    "screenTime": 10,
}


@pytest.fixture
def client():
    """Create an MCP client connected to a fresh in-memory server."""
    return Client(create_app())


def test_server_starts_and_lists_tools(client):
    async def _check():
        async with client:
            tool_names = [t.name for t in await client.list_tools()]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    async def _check():
        async with client:
            result = await _call(client, "health_check")
            assert result["status"] == "ok"
            assert result["schema_version"] == 2
            assert result["registered_users"] == 0
            assert result["practitioners_listed"] == 9
    _run(_check())


class TestAccounts:
    def test_sign_up_sign_in_profile(self, client):
        async def _check():
            async with client:
                created = await _call(
                    client, "sign_up", email="Asha@Example.com", password="s3cret!", name="Asha"
                )
                assert created["status"] == "created"
                assert created["user"]["email"] == "asha@example.com"

                signed_in = await _call(client, "sign_in", email="asha@example.com", password="s3cret!")
                assert signed_in["status"] == "ok"
                token = signed_in["access_token"]

                profile = await _call(client, "get_profile", access_token=token)
                assert profile["profile"]["name"] == "Asha"
                assert profile["profile"]["id"] == created["user"]["id"]
        _run(_check())

    def test_duplicate_and_bad_credentials(self, client):
        async def _check():
            async with client:
                await _signed_in(client)
                duplicate = await _call(
                    client, "sign_up", email="asha@example.com", password="other12", name="A"
                )
                assert duplicate["status"] == "error"
                assert "already exists" in duplicate["message"]

                bad = await _call(client, "sign_in", email="asha@example.com", password="nope!!")
                assert bad == {"status": "error", "message": "Invalid email or password"}
        _run(_check())

    def test_unauthorized_and_sign_out(self, client):
        async def _check():
            async with client:
                denied = await _call(client, "get_dosha_assessment", access_token="bogus")
                assert denied["status"] == "unauthorized"

                token = await _signed_in(client)
                assert (await _call(client, "sign_out", access_token=token))["status"] == "signed_out"
                after = await _call(client, "get_profile", access_token=token)
                assert after["status"] == "unauthorized"
        _run(_check())


class TestRecords:
    def test_save_get_and_history(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                assert (await _call(client, "get_dosha_assessment", access_token=token))["assessment"] is None

                saved = await _call(
                    client, "save_dosha_assessment", access_token=token,
                    payload={"scores": {"vata": 60, "pitta": 25, "kapha": 15}},
                )
                assert saved["status"] == "saved"
                assert saved["assessment"]["timestamp"] == saved["timestamp"]

                latest = await _call(client, "get_dosha_assessment", access_token=token)
                assert latest["assessment"]["scores"]["vata"] == 60

                history = await _call(client, "get_history", access_token=token, category="dosha")
                assert history["count"] == 1
                assert history["history"][0] == latest["assessment"]
        _run(_check())

    def test_lifestyle_history_rejected(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                await _call(client, "save_lifestyle", access_token=token, payload={"diet": "vegan"})
                assert (await _call(client, "get_lifestyle", access_token=token))["lifestyle"]["diet"] == "vegan"

                history = await _call(client, "get_history", access_token=token, category="lifestyle")
                assert history["status"] == "error"
                unknown = await _call(client, "get_history", access_token=token, category="labs")
                assert "Unknown category" in unknown["message"]
        _run(_check())

    def test_users_cannot_see_each_other(self, client):
        async def _check():
            async with client:
                asha = await _signed_in(client)
                ravi = await _signed_in(client, email="ravi@example.com")
                await _call(client, "save_predictions", access_token=asha, payload={"predictions": []})
                other = await _call(client, "get_predictions", access_token=ravi)
                assert other["predictions"] is None
        _run(_check())


class TestAssessments:
    def test_constitution_then_lifestyle(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)

                constitution = await _call(
                    client, "assess_constitution", access_token=token,
                    health_attributes=VATA_QUESTIONNAIRE,
                )
                assert constitution["status"] == "ok"
                assert constitution["scores"] == {"vata": 100, "pitta": 0, "kapha": 0}
                assert constitution["dominant_dosha"] == "Vata"
                assert constitution["description"].startswith("Vata governs movement")

                health = await _call(client, "get_health_assessment", access_token=token)
                assert health["assessment"]["params"]["body_temperature"] == "cold"
                assert health["assessment"]["timestamp"] == constitution["timestamp"]

                lifestyle = await _call(client, "assess_lifestyle", access_token=token, lifestyle=LIFESTYLE)
                assert lifestyle["status"] == "ok"
                diseases = [p["disease"] for p in lifestyle["predictions"]]
                assert diseases[0] == "Anxiety & Sleep Disorders"
                assert "Chronic Stress & Burnout Risk" in diseases
                # 20 sleep + 15 weekly + 25 stress + 6 screen + 20 meals
                assert lifestyle["lifestyle_risk"]["overall_risk"] == 86

                stored = await _call(client, "get_predictions", access_token=token)
                assert stored["predictions"]["predictions"] == lifestyle["predictions"]
                saved_habits = await _call(client, "get_lifestyle", access_token=token)
                assert saved_habits["lifestyle"]["sleep_hours"] == 5
        _run(_check())

    def test_lifestyle_without_constitution_fails(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                result = await _call(client, "assess_lifestyle", access_token=token, lifestyle=LIFESTYLE)
                assert result["status"] == "error"
                assert "assess_constitution" in result["message"]

                inline = await _call(
                    client, "assess_lifestyle", access_token=token,
                    lifestyle=LIFESTYLE, health_attributes=VATA_QUESTIONNAIRE,
                )
                assert inline["dominant_dosha"] == "Vata"
        _run(_check())

    def test_invalid_questionnaire(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                result = await _call(
                    client, "assess_constitution", access_token=token,
                    health_attributes={**VATA_QUESTIONNAIRE, "digestion": "fiery"},
                )
                assert result["status"] == "error"
                assert "digestion must be one of" in result["message"]
        _run(_check())

    def test_malformed_stored_scores_are_rejected(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                await _call(client, "assess_constitution", access_token=token,
                            health_attributes=VATA_QUESTIONNAIRE)
                await _call(
                    client, "save_dosha_assessment", access_token=token,
                    payload={"scores": [50, 30, 20]},
                )

                lifestyle = await _call(client, "assess_lifestyle", access_token=token, lifestyle=LIFESTYLE)
                assert lifestyle["status"] == "error"
                assert "Expected an object" in lifestyle["message"]

                practitioners = await _call(client, "nearby_practitioners", access_token=token)
                assert practitioners["status"] == "error"

                summary = await _call(client, "audit_summary", access_token=token)
                failed = {e["tool_name"] for e in summary["recent_events"] if e["status"] == "failure"}
                assert failed == {"assess_lifestyle", "nearby_practitioners"}
        _run(_check())


class TestPractitioners:
    def test_defaults_to_stored_dosha(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                await _call(client, "assess_constitution", access_token=token,
                            health_attributes=VATA_QUESTIONNAIRE)
                result = await _call(client, "nearby_practitioners", access_token=token)
                assert result["dosha_profile"] == "Vata"
                assert len(result["practitioners"]) == 9
                first = result["practitioners"][0]
                assert first["ayush_focus"] == "Vata Balancing & Anxiety Management"
                assert first["distance"] == "Location not available"
        _run(_check())

    def test_location_and_validation(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                located = await _call(
                    client, "nearby_practitioners", access_token=token,
                    dosha_profile="Pitta", location={"lat": 28.6, "lng": 77.2},
                )
                assert located["practitioners"][0]["distance"] == "1.2 km"

                invalid = await _call(
                    client, "nearby_practitioners", access_token=token,
                    location={"lat": 123, "lng": 0},
                )
                assert invalid["status"] == "error"
        _run(_check())


class TestDataManagement:
    def test_audit_and_delete(self, client):
        async def _check():
            async with client:
                token = await _signed_in(client)
                await _call(client, "assess_constitution", access_token=token,
                            health_attributes=VATA_QUESTIONNAIRE)

                summary = await _call(client, "audit_summary", access_token=token)
                assert summary["status"] == "ok"
                assert summary["total_events"] >= 2
                tools = {e["tool_name"] for e in summary["recent_events"]}
                assert "assess_constitution" in tools

                cancelled = await _call(client, "delete_my_data", access_token=token)
                assert cancelled["status"] == "cancelled"

                deleted = await _call(client, "delete_my_data", access_token=token, confirm="DELETE_ALL")
                assert deleted["status"] == "all_deleted"
                # profile + dosha latest/history + health latest/history
                assert deleted["records_deleted"] == 5

                after = await _call(client, "get_dosha_assessment", access_token=token)
                assert after["assessment"] is None
        _run(_check())

    @pytest.mark.parametrize(
        "days,message",
        [(0, "at least 1"), (-7, "at least 1"), (10**9, "too large")],
    )
    def test_audit_window_out_of_range(self, client, days, message):
        async def _check():
            async with client:
                token = await _signed_in(client)
                result = await _call(client, "audit_summary", access_token=token, days=days)
                assert result["status"] == "error"
                assert message in result["message"]
        _run(_check())
