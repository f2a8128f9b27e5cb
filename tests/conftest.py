"""Shared test fixtures and helpers."""

from datetime import date, datetime, timezone
from typing import Optional

import pytest

from appointment_engine.notifications import (
    NotificationDispatcher,
    NotificationEvent,
    NotificationType,
)
from appointment_engine.repository import InMemoryRepository
from appointment_engine.scheduler import Scheduler
from appointment_engine.scheduling.availability import DaySchedule
from appointment_engine.schemas.appointment_schema import Appointment, AppointmentStatus
from appointment_engine.schemas.catalog_schema import Professional, Service
from appointment_engine.schemas.settings_schema import ShopSettings

MONDAY = date(2025, 3, 17)
SATURDAY = date(2025, 3, 22)
SUNDAY = date(2025, 3, 23)

FIXED_NOW = datetime(2025, 3, 17, 8, 30, tzinfo=timezone.utc)


def make_settings(**overrides) -> ShopSettings:
    """ShopSettings matching the original shop: 09-20 weekdays, 09-18 Saturday."""
    values = dict(
        hours_weekdays="09:00-20:00",
        hours_saturday="09:00-18:00",
        hours_sunday="closed",
        lunch_break_start="12:00",
        lunch_break_end="13:00",
        slot_interval_minutes=30,
        queue_enabled=True,
        max_queue_size=10,
        average_service_minutes=25,
    )
    values.update(overrides)
    return ShopSettings(**values)


def make_appointment(
    time: str,
    duration: int = 30,
    professional_id: str = "carlos",
    day: date = MONDAY,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    appointment_id: Optional[str] = None,
) -> Appointment:
    """Helper to create a stored-looking Appointment."""
    return Appointment(
        id=appointment_id or f"appt-{professional_id}-{time}",
        protocol=f"AGD-{professional_id}-{time}",
        client_name="Test Client",
        client_phone="11987654321",
        service_id="haircut",
        professional_id=professional_id,
        date=day,
        time=time,
        duration_minutes=duration,
        status=status,
    )


def make_schedule(day: date = MONDAY, **kwargs) -> DaySchedule:
    settings = kwargs.pop("settings", None) or make_settings()
    return DaySchedule(day=day, professional_id="carlos", settings=settings, **kwargs)


class EventRecorder:
    """Collects every published notification."""

    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def __call__(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.type.value for e in self.events]


@pytest.fixture
def repository():
    repo = InMemoryRepository()
    repo.save_settings(make_settings())
    repo.save_service(Service(id="haircut", name="Corte", duration=30, price=45.0))
    repo.save_service(Service(id="combo", name="Corte + Barba", duration=60, price=70.0))
    repo.save_service(
        Service(id="coloring", name="Coloração", duration=90, price=120.0, visible=False)
    )
    repo.save_professional(Professional(id="carlos", name="Carlos Silva", rating=4.9))
    repo.save_professional(Professional(id="rafael", name="Rafael Santos", rating=4.7))
    return repo


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def scheduler(repository, recorder):
    notifier = NotificationDispatcher()
    sched = Scheduler("shop-test", repository, notifier, clock=lambda: FIXED_NOW)
    for event_type in NotificationType:
        notifier.subscribe(event_type, recorder)
    return sched


def book(scheduler: Scheduler, time: str, name: str = "Ana Souza", service_id: str = "haircut",
         professional_id: str = "carlos", day: date = MONDAY) -> Appointment:
    """Create an appointment with valid client details."""
    return scheduler.create_appointment(
        name, "(11) 98765-4321", service_id, professional_id, day, time
    )
