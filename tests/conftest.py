from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional

import pytest
import structlog

from vedic_moon.swiss import EphemerisFailure
from vedic_moon.utils import mod360

REFERENCE = datetime(2025, 8, 8, 12, 0, tzinfo=timezone.utc)

MOON_DEG_PER_DAY = 13.176
SUN_DEG_PER_DAY = 0.9856


class LinearEphemeris:
    """Bodies moving at constant speed from fixed longitudes at ``epoch``."""

    def __init__(
        self,
        start: Optional[Dict[str, float]] = None,
        rates: Optional[Dict[str, float]] = None,
        epoch: datetime = REFERENCE,
    ) -> None:
        self.start = start or {"Moon": 100.0, "Sun": 140.0}
        self.rates = rates or {"Moon": MOON_DEG_PER_DAY, "Sun": SUN_DEG_PER_DAY}
        self.epoch = epoch
        self.calls = 0

    def tropical_longitude(self, body: str, instant: datetime) -> float:
        self.calls += 1
        days = (instant - self.epoch).total_seconds() / 86400.0
        return mod360(self.start[body] + self.rates[body] * days)

    def elongation(self, body_a: str, body_b: str, instant: datetime) -> float:
        return mod360(
            self.tropical_longitude(body_a, instant) - self.tropical_longitude(body_b, instant)
        )


class BrokenEphemeris:
    def tropical_longitude(self, body: str, instant: datetime) -> float:
        raise EphemerisFailure(f"no data for {body}")

    def elongation(self, body_a: str, body_b: str, instant: datetime) -> float:
        raise EphemerisFailure("no data")


@pytest.fixture
def linear_ephemeris() -> LinearEphemeris:
    return LinearEphemeris()


@pytest.fixture
def reference_instant() -> datetime:
    return REFERENCE


@pytest.fixture(autouse=True)
def reset_structlog():
    # setup_logging binds the current sys.stderr, which capsys swaps per test
    yield
    structlog.reset_defaults()
