"""Tropical to sidereal conversion with a linearly drifting ayanamsha.

The offset is ``base_deg + rate_deg_per_year * years`` where ``years`` counts
tropical years from 2000-01-01 12:00 UTC (negative before it). The presets
below are mean values at that epoch together with the general precession in
longitude, which keeps them within a few arcseconds of the reference
ephemerides over the 20th and 21st centuries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict

from .utils import InvalidInput, mod360, to_utc

__all__ = [
    "AYANAMSHA_PRESETS",
    "AyanamshaModel",
    "DEFAULT_AYANAMSHA",
    "KRISHNAMURTI",
    "LAHIRI",
    "RAMAN",
    "REFERENCE_EPOCH",
    "TROPICAL",
    "TROPICAL_YEAR_DAYS",
    "get_ayanamsha",
]

REFERENCE_EPOCH = datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)
TROPICAL_YEAR_DAYS = 365.2422
SECONDS_PER_TROPICAL_YEAR = TROPICAL_YEAR_DAYS * 86400.0

# 50.29"/yr general precession in longitude
PRECESSION_DEG_PER_YEAR = 50.2910 / 3600.0


@dataclass(frozen=True)
class AyanamshaModel:
    name: str
    base_deg: float
    rate_deg_per_year: float = PRECESSION_DEG_PER_YEAR

    def years_since_epoch(self, instant: datetime) -> float:
        elapsed = (to_utc(instant) - REFERENCE_EPOCH).total_seconds()
        return elapsed / SECONDS_PER_TROPICAL_YEAR

    def offset(self, instant: datetime) -> float:
        """Ayanamsha in degrees at ``instant``; not wrapped."""
        return self.base_deg + self.rate_deg_per_year * self.years_since_epoch(instant)

    def sidereal_longitude(self, tropical_deg: float, instant: datetime) -> float:
        return mod360(tropical_deg - self.offset(instant))


LAHIRI = AyanamshaModel("lahiri", 23.857092)
RAMAN = AyanamshaModel("raman", 22.410791)
KRISHNAMURTI = AyanamshaModel("krishnamurti", 23.760240)
TROPICAL = AyanamshaModel("tropical", 0.0, 0.0)

AYANAMSHA_PRESETS: Dict[str, AyanamshaModel] = {
    model.name: model for model in (LAHIRI, RAMAN, KRISHNAMURTI, TROPICAL)
}

DEFAULT_AYANAMSHA = LAHIRI.name


def get_ayanamsha(name: str) -> AyanamshaModel:
    try:
        return AYANAMSHA_PRESETS[name.strip().lower()]
    except KeyError as exc:
        known = ", ".join(sorted(AYANAMSHA_PRESETS))
        raise InvalidInput(f"Unknown ayanamsa '{name}' (expected one of: {known})") from exc
