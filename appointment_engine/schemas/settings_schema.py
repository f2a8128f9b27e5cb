"""Per-tenant shop policy: opening hours, lunch window and queue limits."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from appointment_engine.config import AppConfig, settings
from appointment_engine.utils import format_hhmm, parse_hhmm, parse_hours_range


def _check_hours(value: Optional[str]) -> Optional[str]:
    parse_hours_range(value)
    return value


def _check_hhmm(value: str) -> str:
    try:
        return format_hhmm(parse_hhmm(value))
    except ValueError:
        raise ValueError(f"time must be HH:MM, got {value!r}") from None


class ShopSettings(BaseModel):
    """Shop policy consumed by the availability calculator and queue."""

    hours_weekdays: str = "09:00-20:00"
    hours_saturday: str = "09:00-18:00"
    hours_sunday: str = "closed"
    lunch_break_start: str = "12:00"
    lunch_break_end: str = "13:00"
    slot_interval_minutes: int = Field(default=30, ge=5, le=240)
    queue_enabled: bool = True
    max_queue_size: int = Field(default=10, ge=1)
    average_service_minutes: int = Field(default=25, ge=1)

    @field_validator("hours_weekdays", "hours_saturday", "hours_sunday")
    @classmethod
    def _validate_hours(cls, value: str) -> str:
        return _check_hours(value)

    @field_validator("lunch_break_start", "lunch_break_end")
    @classmethod
    def _validate_lunch(cls, value: str) -> str:
        return _check_hhmm(value)

    @model_validator(mode="after")
    def _validate_lunch_order(self) -> "ShopSettings":
        if parse_hhmm(self.lunch_break_start) > parse_hhmm(self.lunch_break_end):
            raise ValueError("lunch_break_start must not be after lunch_break_end")
        return self

    @classmethod
    def from_config(cls, config: AppConfig = settings) -> "ShopSettings":
        """Build the starting settings for a new tenant from configuration."""
        return cls(
            hours_weekdays=config.shop.hours_weekdays,
            hours_saturday=config.shop.hours_saturday,
            hours_sunday=config.shop.hours_sunday,
            lunch_break_start=config.shop.lunch_break_start,
            lunch_break_end=config.shop.lunch_break_end,
            slot_interval_minutes=config.shop.slot_interval_minutes,
            queue_enabled=config.queue.enabled,
            max_queue_size=config.queue.max_size,
            average_service_minutes=config.queue.avg_service_minutes,
        )

    def hours_for_weekday(self, weekday: int) -> Optional[str]:
        """Return the hours string for ``date.weekday()`` (0=Monday)."""
        if weekday == 6:
            return self.hours_sunday
        if weekday == 5:
            return self.hours_saturday
        return self.hours_weekdays


class ShopSettingsUpdate(BaseModel):
    """Partial update submitted by staff. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    hours_weekdays: Optional[str] = None
    hours_saturday: Optional[str] = None
    hours_sunday: Optional[str] = None
    lunch_break_start: Optional[str] = None
    lunch_break_end: Optional[str] = None
    slot_interval_minutes: Optional[int] = Field(default=None, ge=5, le=240)
    queue_enabled: Optional[bool] = None
    max_queue_size: Optional[int] = Field(default=None, ge=1)
    average_service_minutes: Optional[int] = Field(default=None, ge=1)
