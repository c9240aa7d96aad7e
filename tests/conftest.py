"""Shared test fixtures for AYUSH Health tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from cryptography.fernet import Fernet

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", Fernet.generate_key().decode())
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("PRACTITIONER_DIRECTORY_PATH", "")
    monkeypatch.setenv("SESSION_TTL_HOURS", "168")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from ayush.domains.health.domain_logic.assessment_models import (  # noqa: E402
    HealthAttributes,
    LifestyleAttributes,
)


# ---------------------------------------------------------------------------
# Questionnaire factories
# ---------------------------------------------------------------------------

def make_health_attributes(**overrides: Any) -> HealthAttributes:
    """Create health attributes with balanced, risk-free defaults."""
    defaults: dict[str, Any] = dict(
        age=30,
        weight=65.0,
        height=170.0,
        body_temperature="neutral",
        digestion="strong",
        sleep_pattern="moderate",
        energy_level="steady",
        skin_type="normal",
        stress_level="low",
        exercise_frequency="daily",
    )
    defaults.update(overrides)
    return HealthAttributes(**defaults)


def make_lifestyle(**overrides: Any) -> LifestyleAttributes:
    """Create lifestyle answers that trigger no risk terms by default."""
    defaults: dict[str, Any] = dict(
        diet="vegetarian",
        meal_timing="regular",
        water_intake="moderate",
        sleep_hours=8,
        exercise_minutes=30,
        stress_management="yoga",
        screen_time=4,
    )
    defaults.update(overrides)
    return LifestyleAttributes(**defaults)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from ayush.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def blob_encryptor():
    """Create a BlobEncryptor with a test key."""
    from ayush.core.storage.encryption import BlobEncryptor

    return BlobEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def kv_store(health_db, blob_encryptor):
    """Create a KeyValueStore backed by in-memory SQLite."""
    from ayush.core.storage.kv_store import KeyValueStore

    return KeyValueStore(health_db, blob_encryptor)


@pytest.fixture
def assessment_repository(kv_store):
    """Create an AssessmentRepository backed by in-memory SQLite."""
    from ayush.core.storage.repository import AssessmentRepository

    return AssessmentRepository(kv_store)


@pytest.fixture
def account_service(health_db):
    """Create an AccountService backed by in-memory SQLite."""
    from ayush.core.auth.accounts import AccountService

    return AccountService(health_db)


@pytest.fixture
def audit_logger(health_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from ayush.core.audit.logger import AuditLogger

    return AuditLogger(health_db)


@pytest.fixture
def make_attrs():
    """Factory fixture for HealthAttributes."""
    return make_health_attributes


@pytest.fixture
def make_habits():
    """Factory fixture for LifestyleAttributes."""
    return make_lifestyle
