"""Runtime settings read from the environment (and a local .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .models import ConquestSettings

load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass(slots=True)
class Settings:
    """Service options plus the sampling thresholds used for new sessions."""

    min_distance_threshold_m: float = field(default_factory=lambda: _env_float("CONQUEST_MIN_DISTANCE_M", 5.0))
    min_time_threshold_ms: int = field(default_factory=lambda: _env_int("CONQUEST_MIN_TIME_MS", 3000))
    accuracy_threshold_m: float = field(default_factory=lambda: _env_float("CONQUEST_ACCURACY_M", 20.0))
    log_level: str = field(default_factory=lambda: os.getenv("CONQUEST_LOG_LEVEL", "INFO").upper())
    host: str = field(default_factory=lambda: os.getenv("CONQUEST_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: _env_int("CONQUEST_PORT", 8000))

    def conquest_settings(self) -> ConquestSettings:
        return ConquestSettings(
            min_distance_threshold_m=self.min_distance_threshold_m,
            min_time_threshold_ms=self.min_time_threshold_ms,
            accuracy_threshold_m=self.accuracy_threshold_m,
        )


settings = Settings()
