"""
Centralized configuration with environment variable overrides.

Scheduling windows, pricing options, and wizard thresholds are
configurable here. Price constants themselves live in the price table.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

TRAVEL_FEE_MODES = ("flat", "distance")


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


@dataclass(frozen=True)
class BusinessConfig:
    """Business-specific settings loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "Picture Perfect TV Install")
    service_area: str = os.getenv("SERVICE_AREA", "Greater Atlanta metro area")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "$")


@dataclass(frozen=True)
class SchedulingConfig:
    """Booking window and slot generation settings."""

    booking_buffer_minutes: int = _safe_int("BOOKING_BUFFER_MINUTES", "30")
    slot_interval_minutes: int = _safe_int("SLOT_INTERVAL_MINUTES", "60")
    lookahead_days: int = _safe_int("AVAILABILITY_LOOKAHEAD_DAYS", "30")
    max_dates_returned: int = _safe_int("MAX_DATES_RETURNED", "5")


@dataclass(frozen=True)
class PricingConfig:
    """Price table location and travel fee behaviour."""

    price_table_path: str = os.getenv("PRICE_TABLE_PATH", "")
    travel_fee_mode: str = os.getenv("TRAVEL_FEE_MODE", "flat")
    travel_free_minutes: float = _safe_float("TRAVEL_FREE_MINUTES", "30")
    travel_per_minute: float = _safe_float("TRAVEL_PER_MINUTE", "2")


@dataclass(frozen=True)
class WizardConfig:
    """Thresholds for the booking wizard."""

    max_detail_retries: int = _safe_int("MAX_DETAIL_RETRIES", "3")
    max_slot_conflicts: int = _safe_int("MAX_SLOT_CONFLICTS", "3")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    wizard: WizardConfig = field(default_factory=WizardConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "mountquote")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    scheduling = config.scheduling
    if scheduling.booking_buffer_minutes < 0:
        raise ValueError(
            f"BOOKING_BUFFER_MINUTES must be >= 0, got {scheduling.booking_buffer_minutes}"
        )
    if not 1 <= scheduling.slot_interval_minutes <= 24 * 60:
        raise ValueError(
            "SLOT_INTERVAL_MINUTES must be between 1 and 1440, "
            f"got {scheduling.slot_interval_minutes}"
        )
    if scheduling.lookahead_days < 1:
        raise ValueError(
            f"AVAILABILITY_LOOKAHEAD_DAYS must be >= 1, got {scheduling.lookahead_days}"
        )
    if scheduling.max_dates_returned < 1:
        raise ValueError(
            f"MAX_DATES_RETURNED must be >= 1, got {scheduling.max_dates_returned}"
        )

    pricing = config.pricing
    if pricing.travel_fee_mode not in TRAVEL_FEE_MODES:
        raise ValueError(
            f"TRAVEL_FEE_MODE must be one of {TRAVEL_FEE_MODES}, got {pricing.travel_fee_mode!r}"
        )
    if pricing.travel_free_minutes < 0:
        raise ValueError(
            f"TRAVEL_FREE_MINUTES must be >= 0, got {pricing.travel_free_minutes}"
        )
    if pricing.travel_per_minute < 0:
        raise ValueError(
            f"TRAVEL_PER_MINUTE must be >= 0, got {pricing.travel_per_minute}"
        )

    if config.wizard.max_detail_retries < 1:
        raise ValueError(
            f"MAX_DETAIL_RETRIES must be >= 1, got {config.wizard.max_detail_retries}"
        )
    if config.wizard.max_slot_conflicts < 1:
        raise ValueError(
            f"MAX_SLOT_CONFLICTS must be >= 1, got {config.wizard.max_slot_conflicts}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
