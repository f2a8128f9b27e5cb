"""
Time-slot availability.

Availability is a pure function of a ``DaySchedule`` snapshot: shop
settings, the professional's override for the day (if any), blocked
windows and existing bookings. Nothing here touches storage, so the same
snapshot can be queried concurrently and repeatedly.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from appointment_engine.errors import ValidationError
from appointment_engine.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    AvailabilityOverride,
    BlockedSlot,
    TimeSlot,
)
from appointment_engine.schemas.settings_schema import ShopSettings
from appointment_engine.utils import format_hhmm, overlaps, parse_hhmm, parse_hours_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DaySchedule:
    """Everything needed to decide availability for one professional on one day."""

    day: date
    professional_id: str
    settings: ShopSettings
    override: Optional[AvailabilityOverride] = None
    blocked_slots: list[BlockedSlot] = field(default_factory=list)
    appointments: list[Appointment] = field(default_factory=list)


def candidate_times(schedule: DaySchedule) -> list[str]:
    """Return the start times offered on the day, before conflict checks.

    An override replaces the generated grid verbatim. Otherwise the grid
    runs from opening time (inclusive) to closing time (exclusive) in
    ``slot_interval_minutes`` steps; a closed day yields an empty list.
    """
    if schedule.override is not None:
        return list(schedule.override.times)

    hours = parse_hours_range(schedule.settings.hours_for_weekday(schedule.day.weekday()))
    if hours is None:
        return []

    opening, closing = hours
    step = schedule.settings.slot_interval_minutes
    return [format_hhmm(minute) for minute in range(opening, closing, step)]


def busy_intervals(schedule: DaySchedule) -> list[tuple[int, int]]:
    """Collect every occupied [start, end) window for the day, in minutes."""
    intervals = [
        (
            parse_hhmm(schedule.settings.lunch_break_start),
            parse_hhmm(schedule.settings.lunch_break_end),
        )
    ]
    for block in schedule.blocked_slots:
        if block.professional_id == schedule.professional_id and block.date == schedule.day:
            intervals.append((parse_hhmm(block.start_time), parse_hhmm(block.end_time)))
    for appt in schedule.appointments:
        if (
            appt.professional_id == schedule.professional_id
            and appt.date == schedule.day
            and appt.status != AppointmentStatus.CANCELLED
        ):
            intervals.append((appt.start_minutes, appt.end_minutes))
    return intervals


def is_slot_available(schedule: DaySchedule, time: str, duration_minutes: int) -> bool:
    """Check whether ``[time, time + duration)`` is free on the day."""
    _check_duration(duration_minutes)
    slot_start = parse_hhmm(time)
    slot_end = slot_start + duration_minutes
    return not any(
        overlaps(slot_start, slot_end, busy_start, busy_end)
        for busy_start, busy_end in busy_intervals(schedule)
    )


def get_available_time_slots(schedule: DaySchedule, duration_minutes: int) -> list[TimeSlot]:
    """
    Annotate every candidate time with availability.

    Unavailable slots are kept in the result so callers can tell a fully
    booked day (non-empty, nothing available) from a closed day (empty).
    """
    _check_duration(duration_minutes)
    busy = busy_intervals(schedule)

    slots = []
    for time in candidate_times(schedule):
        slot_start = parse_hhmm(time)
        slot_end = slot_start + duration_minutes
        available = not any(overlaps(slot_start, slot_end, s, e) for s, e in busy)
        slots.append(TimeSlot(time=time, available=available))

    logger.debug(
        "%d/%d slots free for %s on %s (%d min)",
        sum(s.available for s in slots), len(slots),
        schedule.professional_id, schedule.day.isoformat(), duration_minutes,
    )
    return slots


def _check_duration(duration_minutes: int) -> None:
    if duration_minutes <= 0:
        raise ValidationError(f"Service duration must be positive, got {duration_minutes}")
