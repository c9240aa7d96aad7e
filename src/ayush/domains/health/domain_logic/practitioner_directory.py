"""Practitioner directory: reads the sample directory YAML from disk.

There is no live geolocation or places lookup: the directory is a static
list, and the caller's location only decides whether placeholder distances
are shown.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY_PATH = Path(__file__).resolve().parent.parent / "data" / "practitioners.yaml"

NO_LOCATION_DISTANCE = "Location not available"


class DirectoryError(Exception):
    """Raised when the practitioner directory cannot be loaded."""


@dataclass(frozen=True)
class Practitioner:
    name: str
    specialty: str
    ayush_focus: str
    rating: float
    distance: str
    address: str
    phone: str
    availability: str
    consultation_fee: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PractitionerDirectory:
    """Loaded directory plus the dosha-specific focus overrides."""

    practitioners: list[Practitioner] = field(default_factory=list)
    dosha_focus: dict[str, str] = field(default_factory=dict)

    def recommend(
        self,
        dosha_profile: str | None,
        location: dict[str, float] | None = None,
    ) -> list[Practitioner]:
        """Return the directory customised for a dominant dosha.

        The first practitioner's focus is replaced by the dosha-specific
        focus when one exists. Without a location every distance becomes
        ``NO_LOCATION_DISTANCE``.
        """
        results: list[Practitioner] = []
        for index, practitioner in enumerate(self.practitioners):
            if index == 0 and dosha_profile in self.dosha_focus:
                practitioner = replace(practitioner, ayush_focus=self.dosha_focus[dosha_profile])
            if not location:
                practitioner = replace(practitioner, distance=NO_LOCATION_DISTANCE)
            results.append(practitioner)
        return results


def load_practitioner_directory(path: str | Path | None = None) -> PractitionerDirectory:
    """Parse the directory YAML into a PractitionerDirectory."""
    path = Path(path) if path else DEFAULT_DIRECTORY_PATH
    try:
        with open(path, encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise DirectoryError(f"Failed to read practitioner directory {path}: {exc}") from exc

    try:
        practitioners = [
            Practitioner(
                name=entry["name"],
                specialty=entry["specialty"],
                ayush_focus=entry.get("ayush_focus", ""),
                rating=float(entry.get("rating", 0.0)),
                distance=str(entry.get("distance", "")),
                address=entry.get("address", ""),
                phone=str(entry.get("phone", "")),
                availability=entry.get("availability", ""),
                consultation_fee=str(entry.get("consultation_fee", "")),
            )
            for entry in data.get("practitioners", [])
        ]
    except (KeyError, TypeError, ValueError) as exc:
        raise DirectoryError(f"Malformed practitioner entry in {path}: {exc}") from exc

    logger.info("Loaded %d practitioners from %s", len(practitioners), path)
    return PractitionerDirectory(
        practitioners=practitioners,
        dosha_focus=dict(data.get("dosha_focus", {})),
    )
