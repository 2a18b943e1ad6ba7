from __future__ import annotations

from datetime import datetime
from functools import lru_cache, partial
from typing import Literal, Optional

import anyio
import structlog
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from .ayanamsha import AyanamshaModel, get_ayanamsha
from .config import get_settings
from .logs import setup_logging
from .snapshot import compute_snapshot, snapshot_payload
from .swiss import EphemerisFailure, EphemerisSource, SwissEphemeris
from .utils import InvalidInput, parse_instant, utc_now

logger = structlog.get_logger(__name__)

AyanamsaName = Literal["lahiri", "raman", "krishnamurti", "tropical"]

USAGE = "Vedic Moon API. Try /moon?iso=2025-08-08T12:00:00Z"


app = FastAPI(title="Vedic Moon Service", version="0.1.0")


@lru_cache(maxsize=1)
def get_ephemeris() -> EphemerisSource:
    return SwissEphemeris(get_settings().swiss_ephe_path)


@app.on_event("startup")
async def startup_event():
    """Configure logging and load the ephemeris before the first request."""
    settings = get_settings()
    setup_logging(settings.log_level)
    get_ephemeris()
    logger.info("service_started", ayanamsa=settings.ayanamsa, port=settings.port)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class MoonPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    iso: Optional[str] = Field(default=None, max_length=64)
    ayanamsa: Optional[AyanamsaName] = None


def _resolve_inputs(iso: Optional[str], ayanamsa: Optional[str]) -> tuple[datetime, AyanamshaModel]:
    settings = get_settings()
    try:
        instant = parse_instant(iso) if iso else utc_now()
        model = get_ayanamsha(ayanamsa or settings.ayanamsa)
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return instant, model


async def _moon_response(
    iso: Optional[str], ayanamsa: Optional[str], ephemeris: EphemerisSource
) -> dict:
    instant, model = _resolve_inputs(iso, ayanamsa)
    worker = partial(
        compute_snapshot,
        instant,
        ephemeris=ephemeris,
        ayanamsha=model,
        timeout=get_settings().ingress_timeout_seconds,
    )
    try:
        snapshot = await anyio.to_thread.run_sync(worker)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except EphemerisFailure as exc:
        logger.error("moon_snapshot_failed", iso=instant.isoformat(), error=str(exc))
        raise HTTPException(
            status_code=500, detail=f"Failed to compute lunar data: {exc}"
        ) from exc
    except Exception as exc:  # pragma: no cover - surfaces specific runtime issues
        logger.exception("moon_snapshot_crashed", iso=instant.isoformat())
        raise HTTPException(
            status_code=500, detail=f"Failed to compute lunar data: {exc}"
        ) from exc
    return snapshot_payload(snapshot)


@app.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return USAGE


@app.get("/healthz")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/moon")
async def moon(
    iso: Optional[str] = Query(None, description="ISO-8601 instant, defaults to now"),
    ayanamsa: Optional[AyanamsaName] = Query(None, description="Sidereal offset preset"),
    ephemeris: EphemerisSource = Depends(get_ephemeris),
):
    return await _moon_response(iso, ayanamsa, ephemeris)


@app.post("/moon")
async def moon_post(
    payload: MoonPayload,
    ephemeris: EphemerisSource = Depends(get_ephemeris),
):
    return await _moon_response(payload.iso, payload.ayanamsa, ephemeris)


def create_app() -> FastAPI:
    return app
