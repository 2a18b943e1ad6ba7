"""Command line entry point: run the HTTP service or print one snapshot."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

from .ayanamsha import AYANAMSHA_PRESETS, get_ayanamsha
from .config import get_settings
from .logs import setup_logging
from .snapshot import compute_snapshot, snapshot_payload
from .swiss import EphemerisFailure, SwissEphemeris
from .utils import InvalidInput, parse_instant, utc_now


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="vedic_moon", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)

    snap = sub.add_parser("snapshot", help="Print the Moon snapshot as JSON")
    snap.add_argument("--iso", help="ISO-8601 instant (default: now)")
    snap.add_argument(
        "--ayanamsa",
        choices=sorted(AYANAMSHA_PRESETS),
        default=settings.ayanamsa,
    )
    return parser.parse_args(argv)


def _serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("vedic_moon.main:app", host=host, port=port, log_level=get_settings().log_level)
    return 0


def _snapshot(iso: Optional[str], ayanamsa: str) -> int:
    settings = get_settings()
    try:
        instant = parse_instant(iso) if iso else utc_now()
        model = get_ayanamsha(ayanamsa)
    except InvalidInput as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    try:
        snapshot = compute_snapshot(
            instant,
            ephemeris=SwissEphemeris(settings.swiss_ephe_path),
            ayanamsha=model,
            timeout=settings.ingress_timeout_seconds,
        )
    except InvalidInput as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except EphemerisFailure as exc:
        print(f"Failed to compute lunar data: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(snapshot_payload(snapshot), indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(get_settings().log_level)
    if args.command == "serve":
        return _serve(args.host, args.port)
    return _snapshot(args.iso, args.ayanamsa)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
