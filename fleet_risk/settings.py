"""
Fleet Risk Settings
Centralized configuration from environment variables

All credentials MUST come from environment variables (or a local .env file).
Scoring thresholds are not configurable here: they live as class constants
on the services that own them.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _get_env(key: str, default: str = "", required: bool = False) -> str:
    """Get environment variable with optional requirement enforcement."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set!")
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(os.getenv(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(os.getenv(key, str(default)))


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


# =============================================================================
# GPS API SETTINGS
# =============================================================================
@dataclass
class GpsApiSettings:
    """Upstream GPS telemetry API (roster, eco events, sensors)."""

    base_url: str = field(default_factory=lambda: _get_env("GPS_API_BASE", ""))
    user: str = field(default_factory=lambda: _get_env("GPS_API_USER", ""))
    password: str = field(default_factory=lambda: _get_env("GPS_API_PASSWORD", ""))
    timeout_seconds: float = field(
        default_factory=lambda: _get_env_float("GPS_API_TIMEOUT_SECONDS", 10.0)
    )
    eco_lookback_hours: int = field(
        default_factory=lambda: _get_env_int("ECO_LOOKBACK_HOURS", 24)
    )

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.user and self.password)


# =============================================================================
# WEATHER SETTINGS
# =============================================================================
@dataclass
class WeatherSettings:
    """Weather context provider (Open-Meteo compatible)."""

    base_url: str = field(
        default_factory=lambda: _get_env(
            "WEATHER_API_BASE", "https://api.open-meteo.com/v1/forecast"
        )
    )
    timeout_seconds: float = field(
        default_factory=lambda: _get_env_float("WEATHER_API_TIMEOUT_SECONDS", 5.0)
    )
    enabled: bool = field(
        default_factory=lambda: _get_env_bool("WEATHER_ENABLED", False)
    )


# =============================================================================
# AGGREGATION SETTINGS
# =============================================================================
@dataclass
class AggregatorSettings:
    """Fan-out limits and time windows for the aggregation cycle."""

    # 0 = one in-flight task per vehicle, no bound
    max_concurrency: int = field(
        default_factory=lambda: _get_env_int("AGGREGATOR_MAX_CONCURRENCY", 0)
    )
    priority_queue_size: int = field(
        default_factory=lambda: _get_env_int("PRIORITY_QUEUE_SIZE", 5)
    )
    fuel_window_minutes: int = field(
        default_factory=lambda: _get_env_int("FUEL_WINDOW_MINUTES", 60)
    )
    fuel_anomaly_window_minutes: int = field(
        default_factory=lambda: _get_env_int("FUEL_ANOMALY_WINDOW_MINUTES", 90)
    )


# =============================================================================
# LOGGING SETTINGS
# =============================================================================
@dataclass
class LoggingSettings:
    level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    format: str = field(default_factory=lambda: _get_env("LOG_FORMAT", "console"))


# =============================================================================
# GLOBAL SETTINGS INSTANCE
# =============================================================================
class Settings:
    """Settings container."""

    version: str = "1.0.0"

    def __init__(self):
        self.gps_api = GpsApiSettings()
        self.weather = WeatherSettings()
        self.aggregator = AggregatorSettings()
        self.logging = LoggingSettings()

    def validate(self) -> List[str]:
        """Validate settings and return list of warnings."""
        warnings = []

        if not self.gps_api.base_url:
            warnings.append("GPS_API_BASE not set - upstream telemetry unavailable")

        if not self.gps_api.user or not self.gps_api.password:
            warnings.append("GPS_API_USER / GPS_API_PASSWORD not set")

        if self.aggregator.priority_queue_size < 1:
            warnings.append("PRIORITY_QUEUE_SIZE must be at least 1")

        if self.aggregator.priority_queue_size > 5:
            warnings.append("PRIORITY_QUEUE_SIZE above 5 is capped at 5")

        if self.aggregator.max_concurrency < 0:
            warnings.append("AGGREGATOR_MAX_CONCURRENCY must not be negative")

        return warnings

    def to_dict(self) -> Dict:
        """Export settings as dictionary (for debugging, excludes secrets)."""
        return {
            "version": self.version,
            "gps_api_base": self.gps_api.base_url,
            "gps_api_configured": self.gps_api.configured,
            "eco_lookback_hours": self.gps_api.eco_lookback_hours,
            "weather_enabled": self.weather.enabled,
            "max_concurrency": self.aggregator.max_concurrency,
            "priority_queue_size": self.aggregator.priority_queue_size,
            "log_level": self.logging.level,
        }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read the environment. Use after changing env vars (tests, .env edits)."""
    global _settings
    _settings = None
    return get_settings()
