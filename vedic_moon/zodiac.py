from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Sequence

from .utils import mod360


RASHI: Sequence[str] = (
    "Mesha",
    "Vrishabha",
    "Mithuna",
    "Karka",
    "Simha",
    "Kanya",
    "Tula",
    "Vrischika",
    "Dhanu",
    "Makara",
    "Kumbha",
    "Meena",
)

NAKSHATRA_NAMES: Sequence[str] = (
    "Ashwini",
    "Bharani",
    "Krittika",
    "Rohini",
    "Mrigashira",
    "Ardra",
    "Punarvasu",
    "Pushya",
    "Ashlesha",
    "Magha",
    "Purva Phalguni",
    "Uttara Phalguni",
    "Hasta",
    "Chitra",
    "Swati",
    "Vishakha",
    "Anuradha",
    "Jyeshtha",
    "Mula",
    "Purva Ashadha",
    "Uttara Ashadha",
    "Shravana",
    "Dhanishtha",
    "Shatabhisha",
    "Purva Bhadrapada",
    "Uttara Bhadrapada",
    "Revati",
)

# Tithis 1-14 of either paksha share these names; 15 and 30 are special.
TITHI_NAMES_CORE: Sequence[str] = (
    "Pratipada",
    "Dwitiya",
    "Tritiya",
    "Chaturthi",
    "Panchami",
    "Shashthi",
    "Saptami",
    "Ashtami",
    "Navami",
    "Dashami",
    "Ekadashi",
    "Dwadashi",
    "Trayodashi",
    "Chaturdashi",
)
FULL_MOON = "Purnima"
NEW_MOON = "Amavasya"

RASHI_SEGMENT_DEG = 30.0
NAKSHATRA_SEGMENT_DEG = 360.0 / 27.0
PADA_SEGMENT_DEG = NAKSHATRA_SEGMENT_DEG / 4.0
TITHI_SEGMENT_DEG = 12.0

Paksha = Literal["Shukla", "Krishna"]


@dataclass(frozen=True)
class Rashi:
    index: int
    name: str
    degrees_in_sign: float


@dataclass(frozen=True)
class Nakshatra:
    index: int
    name: str
    pada: int
    degrees_into: float


@dataclass(frozen=True)
class Tithi:
    number: int
    name: str
    paksha: Paksha
    elongation_deg: float


def segment_index(deg: float, segment_size: float) -> int:
    deg = mod360(deg)
    idx = int(math.floor(deg / segment_size))
    # Keep the quotient consistent with boundaries computed as k * size.
    if (idx + 1) * segment_size <= deg:
        idx += 1
    elif idx * segment_size > deg:
        idx -= 1
    return idx


def rashi_of(lon: float) -> Rashi:
    deg = mod360(lon)
    index = segment_index(deg, RASHI_SEGMENT_DEG) % len(RASHI)
    return Rashi(index=index, name=RASHI[index], degrees_in_sign=deg % RASHI_SEGMENT_DEG)


def nakshatra_of(lon: float) -> Nakshatra:
    """Nakshatra and pada (1-4) of a sidereal longitude.

    ``within`` is clamped into ``[0, span)`` so float error at either edge of
    a sector can never report pada 0 or pada 5.
    """
    deg = mod360(lon)
    index = min(segment_index(deg, NAKSHATRA_SEGMENT_DEG), len(NAKSHATRA_NAMES) - 1)
    within = max(0.0, deg - index * NAKSHATRA_SEGMENT_DEG)
    pada = int(math.floor(within / PADA_SEGMENT_DEG)) + 1
    pada = min(max(pada, 1), 4)
    return Nakshatra(index=index, name=NAKSHATRA_NAMES[index], pada=pada, degrees_into=within)


def tithi_name(number: int) -> str:
    if number == 15:
        return FULL_MOON
    if number == 30:
        return NEW_MOON
    return TITHI_NAMES_CORE[(number - 1) % 15]


def tithi_of(elongation: float) -> Tithi:
    deg = mod360(elongation)
    number = min(segment_index(deg, TITHI_SEGMENT_DEG), 29) + 1
    paksha: Paksha = "Shukla" if number <= 15 else "Krishna"
    return Tithi(number=number, name=tithi_name(number), paksha=paksha, elongation_deg=deg)
