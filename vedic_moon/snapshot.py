"""Assemble the Moon's sidereal position and its next ingresses."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Sequence

from .ayanamsha import AyanamshaModel, LAHIRI
from .ingress import IngressEvent, find_body_ingress
from .swiss import EphemerisSource, SwissEphemeris
from .utils import ensure_supported, format_instant
from .zodiac import (
    NAKSHATRA_NAMES,
    NAKSHATRA_SEGMENT_DEG,
    RASHI,
    RASHI_SEGMENT_DEG,
    Nakshatra,
    Rashi,
    Tithi,
    nakshatra_of,
    rashi_of,
    tithi_of,
)

__all__ = ["MoonSnapshot", "compute_snapshot", "snapshot_payload"]

LONGITUDE_DECIMALS = 6
SECTOR_DECIMALS = 4


@dataclass(frozen=True)
class MoonSnapshot:
    instant: datetime
    ayanamsha: AyanamshaModel
    ayanamsha_deg: float
    sidereal_longitude: float
    rashi: Rashi
    nakshatra: Nakshatra
    tithi: Tithi
    next_rashi_ingress: Optional[IngressEvent]
    next_nakshatra_ingress: Optional[IngressEvent]


def compute_snapshot(
    instant: datetime,
    *,
    ephemeris: Optional[EphemerisSource] = None,
    ayanamsha: Optional[AyanamshaModel] = None,
    timeout: Optional[float] = None,
) -> MoonSnapshot:
    """Position of the Moon at ``instant`` plus its next rashi and nakshatra ingress.

    Parameters
    ----------
    instant:
        Moment of interest; naive values are read as UTC.
    ephemeris:
        Tropical longitude source. A :class:`SwissEphemeris` is created
        otherwise.
    ayanamsha:
        Sidereal offset model, Lahiri by default.
    timeout:
        Wall-clock limit in seconds for each ingress search.

    Raises
    ------
    InvalidInput
        ``instant`` lies outside the range the ephemeris covers.
    """

    at = ensure_supported(instant)
    ephem = ephemeris or SwissEphemeris()
    model = ayanamsha or LAHIRI

    tropical = ephem.tropical_longitude("Moon", at)
    sidereal = model.sidereal_longitude(tropical, at)
    # Elongation is frame independent, the ayanamsha cancels out.
    elongation = ephem.elongation("Moon", "Sun", at)

    next_rashi = find_body_ingress(
        "Moon", at, RASHI_SEGMENT_DEG, ephemeris=ephem, ayanamsha=model, timeout=timeout
    )
    next_nakshatra = find_body_ingress(
        "Moon", at, NAKSHATRA_SEGMENT_DEG, ephemeris=ephem, ayanamsha=model, timeout=timeout
    )

    return MoonSnapshot(
        instant=at,
        ayanamsha=model,
        ayanamsha_deg=model.offset(at),
        sidereal_longitude=sidereal,
        rashi=rashi_of(sidereal),
        nakshatra=nakshatra_of(sidereal),
        tithi=tithi_of(elongation),
        next_rashi_ingress=next_rashi,
        next_nakshatra_ingress=next_nakshatra,
    )


def _ingress_row(
    event: Optional[IngressEvent], kind: str, names: Sequence[str]
) -> Optional[Dict[str, object]]:
    if event is None:
        return None
    return {
        "when": format_instant(event.time_utc),
        f"{kind}Index": event.boundary_index,
        f"{kind}Name": names[event.boundary_index],
    }


def snapshot_payload(snapshot: MoonSnapshot) -> Dict[str, object]:
    """JSON-ready rendering of a snapshot, rounded for display."""
    rashi = snapshot.rashi
    nak = snapshot.nakshatra
    tithi = snapshot.tithi
    return {
        "input": {
            "iso": format_instant(snapshot.instant),
            "ayanamsa": snapshot.ayanamsha.name,
            "ayanamshaDeg": round(snapshot.ayanamsha_deg, LONGITUDE_DECIMALS),
        },
        "moon": {
            "siderealLongitudeDeg": round(snapshot.sidereal_longitude, LONGITUDE_DECIMALS),
            "rashi": {
                "index": rashi.index,
                "name": rashi.name,
                "degreesInSign": round(rashi.degrees_in_sign, SECTOR_DECIMALS),
            },
            "nakshatra": {
                "index": nak.index,
                "name": nak.name,
                "pada": nak.pada,
                "degreesIntoNakshatra": round(nak.degrees_into, SECTOR_DECIMALS),
            },
            "tithi": {
                "number": tithi.number,
                "name": tithi.name,
                "paksha": tithi.paksha,
                "elongDeg": round(tithi.elongation_deg, SECTOR_DECIMALS),
            },
        },
        "nextIngress": {
            "rashi": _ingress_row(snapshot.next_rashi_ingress, "rashi", RASHI),
            "nakshatra": _ingress_row(
                snapshot.next_nakshatra_ingress, "nakshatra", NAKSHATRA_NAMES
            ),
        },
    }
