"""Next-ingress search for a body moving forward around the sidereal circle.

The search samples the sidereal longitude at a fixed coarse step until the
target grid boundary has been passed, then bisects the bracketing interval a
fixed number of times. Scan parameters come from a :class:`ScanProfile`
sized from the body's maximum daily motion, so a single coarse step can
never carry the body across a whole sector.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

import structlog

from .ayanamsha import AyanamshaModel
from .swiss import EphemerisFailure, EphemerisSource
from .utils import mid_datetime, to_utc

__all__ = [
    "IngressEvent",
    "IngressTimeout",
    "LongitudeFn",
    "MOON_PROFILE",
    "SCAN_PROFILES",
    "SUN_PROFILE",
    "ScanProfile",
    "body_longitude_fn",
    "find_body_ingress",
    "find_next_ingress",
    "next_boundary",
]

logger = structlog.get_logger(__name__)

LongitudeFn = Callable[[datetime], float]


@dataclass(frozen=True)
class ScanProfile:
    coarse_step: timedelta
    horizon: timedelta
    iterations: int = 24


# Moon moves at most ~15.4 deg/day: 0.32 deg per 30 min, one 30 deg sign in
# under 2.5 days.
MOON_PROFILE = ScanProfile(coarse_step=timedelta(minutes=30), horizon=timedelta(days=3))
# Sun moves at most ~1.02 deg/day: 0.51 deg per 12 h, one sign in ~31 days.
SUN_PROFILE = ScanProfile(coarse_step=timedelta(hours=12), horizon=timedelta(days=32))

SCAN_PROFILES: Dict[str, ScanProfile] = {
    "Moon": MOON_PROFILE,
    "Sun": SUN_PROFILE,
}


@dataclass(frozen=True)
class IngressEvent:
    time_utc: datetime
    boundary_index: int
    boundary_deg: float


class IngressTimeout(EphemerisFailure):
    """Raised when an ingress search outlives its wall-clock deadline."""


def _distance_before(lon: float, boundary: float) -> float:
    return (lon - boundary + 3600.0) % 360.0


def next_boundary(lon: float, step_deg: float) -> float:
    """First grid boundary strictly ahead of ``lon``."""
    boundary = math.ceil(lon / step_deg) * step_deg
    if boundary == lon:
        boundary += step_deg
    return boundary


def _check_deadline(deadline: Optional[float], started: float) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise IngressTimeout(
            f"Ingress search exceeded {deadline - started:.1f}s deadline"
        )


def _coarse_bracket(
    fn: LongitudeFn,
    start: datetime,
    lon0: float,
    boundary: float,
    profile: ScanProfile,
    deadline: Optional[float],
    started: float,
) -> Optional[Tuple[datetime, datetime]]:
    end = start + profile.horizon
    prev_time = start
    prev_dist = _distance_before(lon0, boundary)
    while prev_time < end:
        _check_deadline(deadline, started)
        t = min(prev_time + profile.coarse_step, end)
        dist = _distance_before(fn(t), boundary)
        # Distance before the boundary grows as the body approaches it and
        # wraps to ~0 once it is passed.
        if dist < prev_dist:
            return prev_time, t
        prev_time, prev_dist = t, dist
    return None


def _bisect(
    fn: LongitudeFn,
    left: datetime,
    right: datetime,
    boundary: float,
    iterations: int,
    deadline: Optional[float],
    started: float,
) -> datetime:
    a, b = left, right
    for _ in range(iterations):
        _check_deadline(deadline, started)
        mid = mid_datetime(a, b)
        if _distance_before(fn(mid), boundary) < 180.0:
            b = mid
        else:
            a = mid
    return b


def find_next_ingress(
    fn: LongitudeFn,
    start: datetime,
    step_deg: float,
    *,
    profile: ScanProfile = MOON_PROFILE,
    timeout: Optional[float] = None,
) -> Optional[IngressEvent]:
    """Find when ``fn`` next crosses a multiple of ``step_deg``.

    ``fn`` maps an instant to a sidereal longitude in [0, 360) that moves
    forward. Returns ``None`` when the profile's horizon passes without a
    crossing; that is an "unknown" answer, not a failure.
    """
    if not math.isfinite(step_deg) or step_deg <= 0.0 or step_deg > 360.0:
        raise ValueError(f"step_deg must be in (0, 360], got {step_deg}")

    started = time.monotonic()
    deadline = started + timeout if timeout is not None else None

    start = to_utc(start)
    lon0 = fn(start)
    boundary = next_boundary(lon0, step_deg)

    bracket = _coarse_bracket(fn, start, lon0, boundary, profile, deadline, started)
    if bracket is None:
        logger.debug(
            "ingress_not_found",
            start=start.isoformat(),
            step_deg=step_deg,
            horizon_hours=profile.horizon.total_seconds() / 3600.0,
        )
        return None

    when = _bisect(fn, bracket[0], bracket[1], boundary, profile.iterations, deadline, started)
    sectors = int(round(360.0 / step_deg))
    index = int(round(boundary / step_deg)) % sectors
    logger.debug(
        "ingress_found",
        start=start.isoformat(),
        when=when.isoformat(),
        boundary_index=index,
        elapsed_ms=round((time.monotonic() - started) * 1000.0, 1),
    )
    return IngressEvent(time_utc=when, boundary_index=index, boundary_deg=index * step_deg)


def body_longitude_fn(
    ephemeris: EphemerisSource, body: str, ayanamsha: AyanamshaModel
) -> LongitudeFn:
    def fn(dt: datetime) -> float:
        return ayanamsha.sidereal_longitude(ephemeris.tropical_longitude(body, dt), dt)

    return fn


def find_body_ingress(
    body: str,
    start: datetime,
    step_deg: float,
    *,
    ephemeris: EphemerisSource,
    ayanamsha: AyanamshaModel,
    timeout: Optional[float] = None,
) -> Optional[IngressEvent]:
    try:
        profile = SCAN_PROFILES[body]
    except KeyError as exc:
        raise ValueError(f"No scan profile for body '{body}'") from exc
    fn = body_longitude_fn(ephemeris, body, ayanamsha)
    return find_next_ingress(fn, start, step_deg, profile=profile, timeout=timeout)
