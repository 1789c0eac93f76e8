"""
Centralized configuration with environment variable overrides.

Scheduling rules, the routing optimizer endpoint and the backend endpoint
are configurable here. Period boundaries are fixed constants and live with
the booking schema, not in configuration.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag such as 'true' / '0' from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and fleet settings."""

    timezone: str = os.getenv("SERVICE_TIMEZONE", "UTC")
    buffer_minutes: int = _safe_int("BUFFER_MINUTES", "30")
    default_duration_minutes: int = _safe_int("DEFAULT_DURATION_MINUTES", "60")
    depot_name: str = os.getenv("DEPOT_NAME", "Depot")
    depot_lat: float = _safe_float("DEPOT_LAT", "0.0")
    depot_lng: float = _safe_float("DEPOT_LNG", "0.0")
    strict_fleet_resolution: bool = _safe_bool("STRICT_FLEET_RESOLUTION", "true")


@dataclass(frozen=True)
class RoutingConfig:
    """External vehicle-routing optimizer settings."""

    api_url: str = os.getenv("ROUTING_API_URL", "https://api.routific.com/v1/vrp")
    api_token: str = os.getenv("ROUTING_API_TOKEN", "")
    timeout_sec: float = _safe_float("ROUTING_TIMEOUT_SEC", "10.0")


@dataclass(frozen=True)
class BackendConfig:
    """Commerce backend serving territories, bookings and cart metadata."""

    api_url: str = os.getenv("BACKEND_API_URL", "http://localhost:9000/store")
    api_key: str = os.getenv("BACKEND_API_KEY", "")
    timeout_sec: float = _safe_float("BACKEND_TIMEOUT_SEC", "10.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "field-service-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    try:
        ZoneInfo(config.scheduling.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"SERVICE_TIMEZONE is not a known timezone: {config.scheduling.timezone!r}"
        ) from None
    if config.scheduling.buffer_minutes < 0:
        raise ValueError(
            f"BUFFER_MINUTES must be >= 0, got {config.scheduling.buffer_minutes}"
        )
    if config.scheduling.default_duration_minutes < 1:
        raise ValueError(
            "DEFAULT_DURATION_MINUTES must be >= 1, "
            f"got {config.scheduling.default_duration_minutes}"
        )
    if not -90.0 <= config.scheduling.depot_lat <= 90.0:
        raise ValueError(
            f"DEPOT_LAT must be between -90 and 90, got {config.scheduling.depot_lat}"
        )
    if not -180.0 <= config.scheduling.depot_lng <= 180.0:
        raise ValueError(
            f"DEPOT_LNG must be between -180 and 180, got {config.scheduling.depot_lng}"
        )

    for timeout_name, timeout_value in [
        ("ROUTING_TIMEOUT_SEC", config.routing.timeout_sec),
        ("BACKEND_TIMEOUT_SEC", config.backend.timeout_sec),
    ]:
        if timeout_value <= 0:
            raise ValueError(f"{timeout_name} must be > 0, got {timeout_value}")

    if not config.routing.api_url:
        raise ValueError("ROUTING_API_URL must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info(
        "Configuration loaded for '%s' (timezone %s)",
        config.app_name, config.scheduling.timezone,
    )
    return config


# Singleton instance
settings = load_config()
