from __future__ import annotations

import json

import pytest

from vedic_moon import __main__ as cli
from vedic_moon.config import get_settings

from .conftest import BrokenEphemeris, LinearEphemeris


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    monkeypatch.delenv("VEDIC_AYANAMSA", raising=False)
    monkeypatch.delenv("INGRESS_TIMEOUT_SECONDS", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_snapshot_command_prints_json(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "SwissEphemeris", lambda path=None: LinearEphemeris())
    code = cli.main(["snapshot", "--iso", "2025-08-08T12:00:00Z", "--ayanamsa", "tropical"])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["input"]["ayanamsa"] == "tropical"
    assert data["moon"]["rashi"]["name"] == "Karka"


def test_snapshot_command_rejects_bad_instant(capsys) -> None:
    assert cli.main(["snapshot", "--iso", "tomorrow-ish"]) == 2
    assert "tomorrow-ish" in capsys.readouterr().err


def test_snapshot_command_rejects_instant_at_end_of_calendar(monkeypatch, capsys) -> None:
    stub = LinearEphemeris()
    monkeypatch.setattr(cli, "SwissEphemeris", lambda path=None: stub)
    assert cli.main(["snapshot", "--iso", "9999-12-31T23:00:00Z"]) == 2
    assert "outside the supported range" in capsys.readouterr().err
    assert stub.calls == 0


def test_snapshot_command_reports_ephemeris_failure(monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "SwissEphemeris", lambda path=None: BrokenEphemeris())
    assert cli.main(["snapshot", "--iso", "2025-08-08T12:00:00Z"]) == 1
    assert "Failed to compute lunar data" in capsys.readouterr().err


def test_unknown_ayanamsa_choice_exits(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["snapshot", "--ayanamsa", "fagan"])
    assert excinfo.value.code == 2
