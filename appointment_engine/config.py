"""
Centralized configuration with environment variable overrides.

Shop defaults, queue policy and booking limits are configurable here.
Per-tenant settings start from these values and are then mutated by
staff through the settings provider.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


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
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class ShopDefaults:
    """Opening hours and lunch window applied to newly created tenants."""

    hours_weekdays: str = os.getenv("SHOP_HOURS_WEEKDAYS", "09:00-20:00")
    hours_saturday: str = os.getenv("SHOP_HOURS_SATURDAY", "09:00-18:00")
    hours_sunday: str = os.getenv("SHOP_HOURS_SUNDAY", "closed")
    lunch_break_start: str = os.getenv("LUNCH_BREAK_START", "12:00")
    lunch_break_end: str = os.getenv("LUNCH_BREAK_END", "13:00")
    slot_interval_minutes: int = _safe_int("SLOT_INTERVAL_MINUTES", "30")


@dataclass(frozen=True)
class QueueConfig:
    """Walk-in queue policy."""

    enabled: bool = _safe_bool("QUEUE_ENABLED", "true")
    max_size: int = _safe_int("MAX_QUEUE_SIZE", "10")
    # Static ETA heuristic, not derived from the booked service durations.
    avg_service_minutes: int = _safe_int("AVG_SERVICE_MINUTES", "25")


@dataclass(frozen=True)
class BookingConfig:
    """Booking reference generation."""

    protocol_prefix: str = os.getenv("PROTOCOL_PREFIX", "AGD")
    protocol_max_attempts: int = _safe_int("PROTOCOL_MAX_ATTEMPTS", "3")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    shop: ShopDefaults = field(default_factory=ShopDefaults)
    queue: QueueConfig = field(default_factory=QueueConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 5 <= config.shop.slot_interval_minutes <= 240:
        raise ValueError(
            "SLOT_INTERVAL_MINUTES must be between 5 and 240, "
            f"got {config.shop.slot_interval_minutes}"
        )
    if config.queue.max_size < 1:
        raise ValueError(f"MAX_QUEUE_SIZE must be >= 1, got {config.queue.max_size}")
    if config.queue.avg_service_minutes < 1:
        raise ValueError(
            f"AVG_SERVICE_MINUTES must be >= 1, got {config.queue.avg_service_minutes}"
        )
    if not config.booking.protocol_prefix.strip():
        raise ValueError("PROTOCOL_PREFIX must not be empty")
    if config.booking.protocol_max_attempts < 1:
        raise ValueError(
            "PROTOCOL_MAX_ATTEMPTS must be >= 1, "
            f"got {config.booking.protocol_max_attempts}"
        )

    for name, value in [
        ("LUNCH_BREAK_START", config.shop.lunch_break_start),
        ("LUNCH_BREAK_END", config.shop.lunch_break_end),
    ]:
        if not _is_hhmm(value):
            raise ValueError(f"{name} must be HH:MM, got {value!r}")
    if config.shop.lunch_break_start > config.shop.lunch_break_end:
        raise ValueError(
            "LUNCH_BREAK_START must not be after LUNCH_BREAK_END, got "
            f"{config.shop.lunch_break_start}-{config.shop.lunch_break_end}"
        )


def _is_hhmm(value: str) -> bool:
    parts = value.split(":")
    if len(parts) != 2 or not all(p.isdigit() and len(p) == 2 for p in parts):
        return False
    return int(parts[0]) < 24 and int(parts[1]) < 60


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
        "Configuration loaded (queue enabled=%s, max size=%d)",
        config.queue.enabled, config.queue.max_size,
    )
    return config


# Singleton instance
settings = load_config()
