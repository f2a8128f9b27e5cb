"""Appointment, blocked-slot and availability models."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from appointment_engine.utils import format_hhmm, parse_hhmm


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_time(value: str) -> str:
    try:
        return format_hhmm(parse_hhmm(value))
    except ValueError:
        raise ValueError(f"time must be HH:MM, got {value!r}") from None


class AppointmentStatus(str, Enum):
    """Lifecycle states of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    INQUEUE = "inqueue"
    CALLED = "called"
    ONWAY = "onway"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Appointment(BaseModel):
    """A booking held by one client with one professional."""
    id: str
    protocol: str
    client_name: str
    client_phone: str
    service_id: str
    professional_id: str
    date: date
    time: str
    duration_minutes: int = Field(gt=0)
    status: AppointmentStatus = AppointmentStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return _normalize_time(value)

    @property
    def start_minutes(self) -> int:
        return parse_hhmm(self.time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration_minutes


class AppointmentRequest(BaseModel):
    """Client-submitted booking form, validated before anything is stored."""
    client_name: str = Field(min_length=2)
    client_phone: str
    service_id: str
    professional_id: str
    date: date
    time: str

    @field_validator("client_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("client name must have at least 2 characters")
        return value

    @field_validator("time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return _normalize_time(value)


class BlockedSlot(BaseModel):
    """Ad hoc unavailability window for one professional on one day."""
    id: str
    professional_id: str
    date: date
    start_time: str
    end_time: str
    reason: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_times(cls, value: str) -> str:
        return _normalize_time(value)

    @model_validator(mode="after")
    def _check_order(self) -> "BlockedSlot":
        if parse_hhmm(self.start_time) >= parse_hhmm(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityOverride(BaseModel):
    """Explicit list of offerable times replacing the default grid for a day."""
    professional_id: str
    date: date
    times: list[str] = Field(default_factory=list)

    @field_validator("times")
    @classmethod
    def _normalize_times(cls, value: list[str]) -> list[str]:
        return sorted({_normalize_time(t) for t in value})


class TimeSlot(BaseModel):
    """A candidate start time annotated with availability."""
    time: str
    available: bool
