"""
Centralized configuration with environment variable overrides.

Storage location, slot generation policy, and notification toggles are
configurable here. Business data (hours, slot duration, branding) lives in
the persisted ``Settings`` record, not in the environment.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SLOT_BOUNDARY_POLICIES = ("full_fit", "start_before_close")
SORT_OPTIONS = ("rating", "jobs", "name")

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


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class StorageConfig:
    """Where the database document is kept."""

    directory: str = os.getenv("RIDERSBUD_STORAGE_DIR", ".ridersbud")
    key: str = os.getenv("RIDERSBUD_STORAGE_KEY", "ridersbud_database")
    seed_on_empty: bool = _safe_bool("SEED_ON_EMPTY", "true")


@dataclass(frozen=True)
class BookingConfig:
    """Slot generation and mechanic listing defaults."""

    slot_boundary_policy: str = os.getenv("SLOT_BOUNDARY_POLICY", "full_fit").lower()
    default_sort: str = os.getenv("DEFAULT_SORT", "rating").lower()
    clamp_to_business_hours: bool = _safe_bool("CLAMP_TO_BUSINESS_HOURS", "false")


@dataclass(frozen=True)
class NotificationConfig:
    """Best-effort notification toggles."""

    booking_updates: bool = _safe_bool("NOTIFY_BOOKING_UPDATES", "true")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.booking.slot_boundary_policy not in SLOT_BOUNDARY_POLICIES:
        raise ValueError(
            f"SLOT_BOUNDARY_POLICY must be one of {SLOT_BOUNDARY_POLICIES}, "
            f"got {config.booking.slot_boundary_policy!r}"
        )
    if config.booking.default_sort not in SORT_OPTIONS:
        raise ValueError(
            f"DEFAULT_SORT must be one of {SORT_OPTIONS}, got {config.booking.default_sort!r}"
        )
    if not config.storage.key.strip():
        raise ValueError("RIDERSBUD_STORAGE_KEY must not be empty")
    if not config.storage.directory.strip():
        raise ValueError("RIDERSBUD_STORAGE_DIR must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded (storage key '%s')", config.storage.key)
    return config


# Singleton instance
settings = load_config()
