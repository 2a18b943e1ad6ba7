from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from vedic_moon.ayanamsha import LAHIRI, TROPICAL
from vedic_moon.snapshot import compute_snapshot, snapshot_payload
from vedic_moon.swiss import EphemerisFailure
from vedic_moon.utils import InvalidInput
from vedic_moon.zodiac import NAKSHATRA_SEGMENT_DEG

from .conftest import MOON_DEG_PER_DAY, BrokenEphemeris, LinearEphemeris


def test_snapshot_classifies_current_position(linear_ephemeris, reference_instant) -> None:
    snap = compute_snapshot(reference_instant, ephemeris=linear_ephemeris)

    expected_lon = 100.0 - LAHIRI.offset(reference_instant)
    assert snap.ayanamsha is LAHIRI
    assert snap.sidereal_longitude == pytest.approx(expected_lon)
    assert snap.rashi.index == 2
    assert snap.rashi.name == "Mithuna"
    assert snap.nakshatra.index == 5
    assert snap.nakshatra.name == "Ardra"
    assert snap.nakshatra.pada == 3
    # Moon 100, Sun 140: waning, elongation 320
    assert snap.tithi.elongation_deg == pytest.approx(320.0)
    assert snap.tithi.number == 27
    assert snap.tithi.paksha == "Krishna"


def test_snapshot_finds_both_ingresses(linear_ephemeris, reference_instant) -> None:
    snap = compute_snapshot(reference_instant, ephemeris=linear_ephemeris)
    lon = snap.sidereal_longitude

    rashi = snap.next_rashi_ingress
    assert rashi is not None
    assert rashi.boundary_index == 3
    expected = reference_instant + timedelta(days=(90.0 - lon) / MOON_DEG_PER_DAY)
    assert abs((rashi.time_utc - expected).total_seconds()) < 60.0

    nak = snap.next_nakshatra_ingress
    assert nak is not None
    assert nak.boundary_index == 6
    expected = reference_instant + timedelta(
        days=(6 * NAKSHATRA_SEGMENT_DEG - lon) / MOON_DEG_PER_DAY
    )
    assert abs((nak.time_utc - expected).total_seconds()) < 60.0
    assert reference_instant < nak.time_utc < rashi.time_utc


def test_payload_shape_and_rounding(linear_ephemeris, reference_instant) -> None:
    snap = compute_snapshot(reference_instant, ephemeris=linear_ephemeris)
    payload = snapshot_payload(snap)

    assert payload["input"]["iso"] == "2025-08-08T12:00:00.000Z"
    assert payload["input"]["ayanamsa"] == "lahiri"
    moon = payload["moon"]
    assert moon["siderealLongitudeDeg"] == round(snap.sidereal_longitude, 6)
    assert moon["rashi"] == {
        "index": 2,
        "name": "Mithuna",
        "degreesInSign": round(snap.rashi.degrees_in_sign, 4),
    }
    assert moon["nakshatra"]["degreesIntoNakshatra"] == round(snap.nakshatra.degrees_into, 4)
    assert moon["nakshatra"]["pada"] == 3
    assert moon["tithi"] == {
        "number": 27,
        "name": "Dwadashi",
        "paksha": "Krishna",
        "elongDeg": 320.0,
    }

    rashi = payload["nextIngress"]["rashi"]
    assert rashi["rashiIndex"] == 3
    assert rashi["rashiName"] == "Karka"
    assert rashi["when"].endswith("Z")
    nak = payload["nextIngress"]["nakshatra"]
    assert nak["nakshatraIndex"] == 6
    assert nak["nakshatraName"] == "Punarvasu"


def test_snapshot_is_deterministic(reference_instant) -> None:
    first = snapshot_payload(compute_snapshot(reference_instant, ephemeris=LinearEphemeris()))
    second = snapshot_payload(compute_snapshot(reference_instant, ephemeris=LinearEphemeris()))
    assert first == second


def test_tropical_preset(linear_ephemeris, reference_instant) -> None:
    snap = compute_snapshot(reference_instant, ephemeris=linear_ephemeris, ayanamsha=TROPICAL)
    assert snap.sidereal_longitude == pytest.approx(100.0)
    assert snap.rashi.name == "Karka"
    assert snap.ayanamsha_deg == 0.0


def test_missing_ingress_renders_null(reference_instant) -> None:
    slow = LinearEphemeris(rates={"Moon": 0.5, "Sun": 0.9856})
    payload = snapshot_payload(compute_snapshot(reference_instant, ephemeris=slow))
    assert payload["nextIngress"] == {"rashi": None, "nakshatra": None}
    assert payload["moon"]["rashi"]["index"] == 2


def test_ephemeris_failure_propagates(reference_instant) -> None:
    with pytest.raises(EphemerisFailure):
        compute_snapshot(reference_instant, ephemeris=BrokenEphemeris())


def test_instant_beyond_ephemeris_range_is_rejected(linear_ephemeris) -> None:
    with pytest.raises(InvalidInput):
        compute_snapshot(datetime(9999, 12, 31, 23, tzinfo=timezone.utc), ephemeris=linear_ephemeris)
    assert linear_ephemeris.calls == 0
