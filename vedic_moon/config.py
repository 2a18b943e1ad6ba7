from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from .ayanamsha import DEFAULT_AYANAMSHA


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{raw}'") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from exc


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 3000
    swiss_ephe_path: Optional[str] = None
    ayanamsa: str = DEFAULT_AYANAMSHA
    ingress_timeout_seconds: float = 10.0
    log_level: str = "info"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", cls.host),
            port=_env_int("PORT", cls.port),
            swiss_ephe_path=os.getenv("SWISS_EPHE_PATH") or None,
            ayanamsa=os.getenv("VEDIC_AYANAMSA", cls.ayanamsa).strip().lower(),
            ingress_timeout_seconds=_env_float("INGRESS_TIMEOUT_SECONDS", cls.ingress_timeout_seconds),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).strip().lower(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
