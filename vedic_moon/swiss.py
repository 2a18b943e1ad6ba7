from __future__ import annotations

import math
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, Tuple

import structlog

try:
    import swisseph as swe
except ImportError as exc:  # pragma: no cover - hard failure surfaced in API layer
    raise RuntimeError(
        "pyswisseph is required but not installed; install the project dependencies"
    ) from exc

from .utils import julday, mod360

logger = structlog.get_logger(__name__)


BODY_IDS: Dict[str, int] = {
    "Sun": swe.SUN,
    "Moon": swe.MOON,
}

# Geocentric, apparent (aberration and nutation applied), tropical of date.
# Moshier's analytic ephemeris needs no data files.
CALC_FLAGS = swe.FLG_MOSEPH


class EphemerisFailure(RuntimeError):
    """Raised when the ephemeris cannot produce a longitude for a body/instant."""


class EphemerisSource(Protocol):
    """The two ephemeris capabilities the sidereal engine depends on."""

    def tropical_longitude(self, body: str, instant: datetime) -> float:
        """Tropical ecliptic longitude of ``body`` at ``instant`` in degrees."""

    def elongation(self, body_a: str, body_b: str, instant: datetime) -> float:
        """Ecliptic angular separation ``body_a - body_b`` in [0, 360)."""


_INIT_LOCK = threading.Lock()
_CALC_LOCK = threading.Lock()
_INITIALISED = False


def _candidate_ephe_paths(configured: Optional[str] = None) -> Iterable[Path]:
    if configured:
        yield Path(configured)
    env = os.environ.get("SWISS_EPHE_PATH")
    if env:
        yield Path(env)
    yield Path("/usr/share/swisseph")


def _initialise_once(ephe_path: Optional[str] = None) -> None:
    global _INITIALISED
    if _INITIALISED:
        return
    with _INIT_LOCK:
        if _INITIALISED:
            return
        for candidate in _candidate_ephe_paths(ephe_path):
            if candidate.is_dir():
                swe.set_ephe_path(str(candidate))
                logger.info("swiss_ephe_path", path=str(candidate))
                break
        _INITIALISED = True


def _body_id(body: str) -> int:
    try:
        return BODY_IDS[body]
    except KeyError as exc:
        raise ValueError(f"Unsupported body '{body}'") from exc


def _body_lon_speed(
    dt: datetime, planet: int, with_speed: bool = False
) -> Tuple[float, Optional[float]]:
    jd = julday(dt)
    flags = CALC_FLAGS
    if with_speed:
        flags |= swe.FLG_SPEED
    try:
        # The C library keeps per-process state; one call at a time.
        with _CALC_LOCK:
            xx, _ = swe.calc_ut(jd, planet, flags)
    except swe.Error as exc:
        raise EphemerisFailure(f"Swiss Ephemeris failed for body {planet} at JD {jd:.6f}: {exc}") from exc
    lon = xx[0]
    if not math.isfinite(lon):
        raise EphemerisFailure(f"Swiss Ephemeris returned a non-finite longitude for body {planet}")
    speed = xx[3] if with_speed else None
    return mod360(lon), speed


class SwissEphemeris:
    """:class:`EphemerisSource` backed by pyswisseph."""

    def __init__(self, ephe_path: Optional[str] = None) -> None:
        _initialise_once(ephe_path)

    def tropical_longitude(self, body: str, instant: datetime) -> float:
        lon, _ = _body_lon_speed(instant, _body_id(body))
        return lon

    def speed(self, body: str, instant: datetime) -> float:
        """Longitudinal speed in degrees per day."""
        _, speed = _body_lon_speed(instant, _body_id(body), True)
        if speed is None or not math.isfinite(speed):
            raise EphemerisFailure(f"Swiss Ephemeris returned no speed for {body}")
        return float(speed)

    def elongation(self, body_a: str, body_b: str, instant: datetime) -> float:
        lon_a = self.tropical_longitude(body_a, instant)
        lon_b = self.tropical_longitude(body_b, instant)
        return mod360(lon_a - lon_b)
