"""
Application configuration.

Responsibilities:
- Load settings from the environment (and a project-root ``.env``).
- Validate them once at startup, separating fatal problems from
  features that should simply be switched off.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_SAMPLE_DATA_DIR = Path(__file__).resolve().parent / "data" / "sample"
_DEFAULT_SESSION_SECRET = "cartotaco-secret-change-in-production"

DATA_BACKENDS = ("supabase", "csv", "memory")


@dataclass(frozen=True)
class DataSourceConfig:
    backend: str = os.getenv("DATA_BACKEND", "csv").strip().lower()
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_ANON_KEY", "")
    data_dir: Path = Path(os.getenv("CARTOTACO_DATA_DIR", str(_SAMPLE_DATA_DIR)))
    timeout: float = float(os.getenv("REMOTE_TIMEOUT", "10.0"))


@dataclass(frozen=True)
class GeocodingConfig:
    api_key: str = os.getenv("MAPBOX_KEY", "")
    base_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    directions_url: str = "https://api.mapbox.com/directions/v5/mapbox"
    # Tucson, AZ
    center_latitude: float = 32.2226
    center_longitude: float = -110.9747
    max_distance_km: float = 80.0
    timeout: float = 10.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class AppConfig:
    data: DataSourceConfig = field(default_factory=DataSourceConfig)
    geocoding: GeocodingConfig = field(default_factory=GeocodingConfig)
    session_secret: str = os.getenv("SESSION_SECRET", _DEFAULT_SESSION_SECRET)
    timezone: str = os.getenv("CARTOTACO_TIMEZONE", "America/Phoenix")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    recent_days: int = 30


DEFAULT_APP_CONFIG = AppConfig()


@dataclass
class StartupReport:
    warnings: list[str] = field(default_factory=list)
    disabled_features: list[str] = field(default_factory=list)


def validate_config(config: AppConfig = DEFAULT_APP_CONFIG) -> StartupReport:
    """
    Check settings before the app is built.

    Raises ``ConfigError`` when the site data cannot be served at all.
    Missing optional keys only disable the feature that needs them.
    """
    data = config.data
    if data.backend not in DATA_BACKENDS:
        raise ConfigError(f"Unknown DATA_BACKEND {data.backend!r}; expected one of {DATA_BACKENDS}")
    if data.backend == "supabase" and not (data.supabase_url and data.supabase_key):
        raise ConfigError("DATA_BACKEND=supabase requires SUPABASE_URL and SUPABASE_ANON_KEY")
    if data.backend == "csv" and not data.data_dir.is_dir():
        raise ConfigError(f"CSV data directory not found: {data.data_dir}")

    report = StartupReport()
    if not config.geocoding.enabled:
        report.disabled_features.append("geocoding")
        report.warnings.append("MAPBOX_KEY not set; address geocoding and trail routes are disabled")
    if config.session_secret == _DEFAULT_SESSION_SECRET:
        report.warnings.append("SESSION_SECRET not set; using the development default")

    for message in report.warnings:
        logger.warning(message)
    return report
