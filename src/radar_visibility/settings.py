"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Literal

from radar_visibility.ingest.open_elevation import DEFAULT_LOOKUP_URL

ProviderMode = Literal["mock", "open-elevation"]

_PROVIDER_MODES: tuple[ProviderMode, ...] = ("mock", "open-elevation")


@dataclass(frozen=True)
class Settings:
    """Service/CLI settings shared by the API app and the command line."""

    elevation_provider: ProviderMode = "mock"
    elevation_url: str = DEFAULT_LOOKUP_URL
    rate_limit_per_s: float = 1.0
    request_timeout_s: float = 10.0
    circle_steps: int = 64
    min_vertices: int = 3
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate settings values."""
        if self.elevation_provider not in _PROVIDER_MODES:
            raise ValueError("RADARVIS_ELEVATION_PROVIDER must be one of: mock, open-elevation")
        if self.rate_limit_per_s < 0.0:
            raise ValueError("RADARVIS_RATE_LIMIT_PER_S must be >= 0")
        if self.request_timeout_s <= 0.0:
            raise ValueError("RADARVIS_REQUEST_TIMEOUT_S must be positive")
        if self.circle_steps < 3:
            raise ValueError("RADARVIS_CIRCLE_STEPS must be >= 3")
        if self.min_vertices < 3:
            raise ValueError("RADARVIS_MIN_VERTICES must be >= 3")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"RADARVIS_LOG_LEVEL is not a logging level: {self.log_level}")


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def settings_from_env() -> Settings:
    """
    Build Settings from environment variables.

    Optional:
      - RADARVIS_ELEVATION_PROVIDER (mock | open-elevation)
      - RADARVIS_ELEVATION_URL
      - RADARVIS_RATE_LIMIT_PER_S (0 disables throttling)
      - RADARVIS_REQUEST_TIMEOUT_S
      - RADARVIS_CIRCLE_STEPS
      - RADARVIS_MIN_VERTICES
      - RADARVIS_LOG_LEVEL
    """
    provider = os.getenv("RADARVIS_ELEVATION_PROVIDER", "mock").strip().lower()
    return Settings(
        elevation_provider=provider,  # type: ignore[arg-type]
        elevation_url=os.getenv("RADARVIS_ELEVATION_URL", DEFAULT_LOOKUP_URL),
        rate_limit_per_s=_env_float("RADARVIS_RATE_LIMIT_PER_S", "1.0"),
        request_timeout_s=_env_float("RADARVIS_REQUEST_TIMEOUT_S", "10"),
        circle_steps=_env_int("RADARVIS_CIRCLE_STEPS", "64"),
        min_vertices=_env_int("RADARVIS_MIN_VERTICES", "3"),
        log_level=os.getenv("RADARVIS_LOG_LEVEL", "INFO").strip().upper(),
    )
