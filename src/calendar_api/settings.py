from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default), 'file' or 'sqlite'
    - STORAGE_DIR: directory holding one JSON document per key for the 'file' backend. Default './data'
    - SQLITE_DB_PATH: path to sqlite db file for the 'sqlite' backend. Default './data/calendar.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - GEOCODING_URL: city search endpoint (Open-Meteo geocoding by default)
    - FORECAST_URL: hourly forecast endpoint (Open-Meteo forecast by default)
    - WEATHER_TIMEOUT_SECONDS: timeout applied to each weather request. Default 10
    - LOG_LEVEL: root logging level. Default 'INFO'
    """

    persistence_backend: str
    storage_dir: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    geocoding_url: str
    forecast_url: str
    weather_timeout_seconds: float
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_float(value: str, default: float) -> float:
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    return level if level in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO"


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        # Star will be handled in main via allow_origins=["*"]
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "file", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        persistence_backend=backend,
        storage_dir=_get_env("STORAGE_DIR", "./data").strip(),
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/calendar.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        geocoding_url=_get_env("GEOCODING_URL", "https://geocoding-api.open-meteo.com/v1/search").strip(),
        forecast_url=_get_env("FORECAST_URL", "https://api.open-meteo.com/v1/forecast").strip(),
        weather_timeout_seconds=_parse_float(_get_env("WEATHER_TIMEOUT_SECONDS", "10"), 10.0),
        log_level=_parse_log_level(_get_env("LOG_LEVEL", "INFO")),
    )
