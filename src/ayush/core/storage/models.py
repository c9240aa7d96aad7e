"""Data models for the persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class StoredValue:
    """A decrypted key-value entry."""

    key: str
    value: Any
    updated_at: str = ""


@dataclass
class UserAccount:
    """A registered user. Password material never leaves the accounts module."""

    id: str
    email: str
    name: str
    created_at: str = ""

    def profile(self) -> dict[str, Any]:
        """The public profile stored under ``user:<id>:profile``."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_at": self.created_at,
        }


@dataclass
class AssessmentRecord:
    """A saved assessment payload plus the timestamp it was stored under."""

    category: str
    timestamp: str
    payload: dict[str, Any] = field(default_factory=dict)

    def as_stored(self) -> dict[str, Any]:
        """The JSON object actually written: payload fields plus ``timestamp``."""
        return {**self.payload, "timestamp": self.timestamp}
