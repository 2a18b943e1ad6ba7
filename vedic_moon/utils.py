from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional


DEGREES_PER_CIRCLE = 360.0
UNIX_EPOCH_JD = 2440587.5

# Moshier ephemeris coverage, also leaves headroom for the longest ingress
# horizon before datetime.max.
EARLIEST_INSTANT = datetime(1, 1, 1, tzinfo=timezone.utc)
LATEST_INSTANT = datetime(3000, 1, 1, tzinfo=timezone.utc)


class InvalidInput(ValueError):
    """Raised when a request carries an instant or option we cannot use."""


def mod360(value: float) -> float:
    r = math.fmod(value, DEGREES_PER_CIRCLE)
    r = r + DEGREES_PER_CIRCLE if r < 0.0 else r
    # fmod of a tiny negative number can round up to exactly 360
    return 0.0 if r >= DEGREES_PER_CIRCLE else r


def to_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def mid_datetime(a: datetime, b: datetime) -> datetime:
    return datetime.fromtimestamp(
        (to_utc(a).timestamp() + to_utc(b).timestamp()) / 2,
        tz=timezone.utc,
    )


def julday(dt: datetime) -> float:
    """Julian day (UT) of an instant."""
    return to_utc(dt).timestamp() / 86400.0 + UNIX_EPOCH_JD


def parse_instant(value: Optional[str]) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    A trailing ``Z`` is accepted, and timestamps without an offset are read
    as UTC. Anything else that ``datetime.fromisoformat`` rejects raises
    :class:`InvalidInput`.
    """
    if value is None:
        raise InvalidInput("Instant is required")
    normalised = value.strip()
    if not normalised:
        raise InvalidInput("Instant is required")
    if normalised.endswith(("Z", "z")):
        normalised = normalised[:-1] + "+00:00"
    try:
        dt = to_utc(datetime.fromisoformat(normalised))
    except ValueError as exc:
        raise InvalidInput(f"Unparseable instant '{value}'") from exc
    except OverflowError as exc:
        raise InvalidInput(f"Instant '{value}' is outside the supported range") from exc
    return ensure_supported(dt)


def ensure_supported(dt: datetime) -> datetime:
    """Return ``dt`` in UTC, or raise :class:`InvalidInput` outside the ephemeris range."""
    try:
        at = to_utc(dt)
    except OverflowError as exc:
        raise InvalidInput(f"Instant {dt.isoformat()} is outside the supported range") from exc
    if not EARLIEST_INSTANT <= at < LATEST_INSTANT:
        raise InvalidInput(
            f"Instant {at.isoformat()} is outside the supported range "
            f"[{EARLIEST_INSTANT.date()}, {LATEST_INSTANT.date()})"
        )
    return at


def format_instant(dt: datetime) -> str:
    """Render an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    text = to_utc(dt).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
