"""
Persistence adapter for the scheduling engine.

The engine talks to storage only through the ``Repository`` protocol.
``InMemoryRepository`` is the reference implementation used by the
console demo and the test-suite. A hosted backend plugs in by
implementing the same methods.

Every read returns a copy and every write stores a copy, so callers can
never mutate stored state by holding on to a returned model.
"""

import logging
from datetime import date
from typing import Optional, Protocol

from appointment_engine.errors import DuplicateProtocolError, NotFoundError
from appointment_engine.schemas.appointment_schema import (
    Appointment,
    AvailabilityOverride,
    BlockedSlot,
)
from appointment_engine.schemas.catalog_schema import Professional, Service
from appointment_engine.schemas.queue_schema import QueueEntry
from appointment_engine.schemas.settings_schema import ShopSettings

logger = logging.getLogger(__name__)


class Repository(Protocol):
    """Storage operations the scheduler depends on."""

    def get_settings(self) -> Optional[ShopSettings]: ...
    def save_settings(self, settings: ShopSettings) -> None: ...

    def list_services(self) -> list[Service]: ...
    def get_service(self, service_id: str) -> Optional[Service]: ...
    def save_service(self, service: Service) -> None: ...
    def list_professionals(self) -> list[Professional]: ...
    def get_professional(self, professional_id: str) -> Optional[Professional]: ...
    def save_professional(self, professional: Professional) -> None: ...

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]: ...
    def list_appointments(
        self, day: Optional[date] = None, professional_id: Optional[str] = None
    ) -> list[Appointment]: ...
    def insert_appointment(self, appointment: Appointment) -> None: ...
    def update_appointment(self, appointment: Appointment) -> None: ...

    def list_blocked_slots(self, professional_id: str, day: date) -> list[BlockedSlot]: ...
    def add_blocked_slot(self, slot: BlockedSlot) -> None: ...
    def remove_blocked_slot(self, slot_id: str) -> None: ...

    def get_override(self, professional_id: str, day: date) -> Optional[AvailabilityOverride]: ...
    def save_override(self, override: AvailabilityOverride) -> None: ...
    def delete_override(self, professional_id: str, day: date) -> None: ...

    def list_queue_entries(self) -> list[QueueEntry]: ...
    def next_queue_sequence(self) -> int: ...
    def insert_queue_entry(self, entry: QueueEntry) -> None: ...
    def update_queue_entry(self, entry: QueueEntry) -> None: ...
    def delete_queue_entry(self, entry_id: str) -> None: ...


class InMemoryRepository:
    """Dict-backed repository for a single tenant."""

    def __init__(self) -> None:
        self._settings: Optional[ShopSettings] = None
        self._services: dict[str, Service] = {}
        self._professionals: dict[str, Professional] = {}
        self._appointments: dict[str, Appointment] = {}
        self._blocked: dict[str, BlockedSlot] = {}
        self._overrides: dict[tuple[str, date], AvailabilityOverride] = {}
        self._queue: dict[str, QueueEntry] = {}
        self._queue_sequence = 0

    # --- Settings ---

    def get_settings(self) -> Optional[ShopSettings]:
        return self._settings.model_copy() if self._settings else None

    def save_settings(self, settings: ShopSettings) -> None:
        self._settings = settings.model_copy()

    # --- Catalog ---

    def list_services(self) -> list[Service]:
        return [s.model_copy(deep=True) for s in self._services.values()]

    def get_service(self, service_id: str) -> Optional[Service]:
        service = self._services.get(service_id)
        return service.model_copy(deep=True) if service else None

    def save_service(self, service: Service) -> None:
        self._services[service.id] = service.model_copy(deep=True)

    def list_professionals(self) -> list[Professional]:
        return [p.model_copy(deep=True) for p in self._professionals.values()]

    def get_professional(self, professional_id: str) -> Optional[Professional]:
        professional = self._professionals.get(professional_id)
        return professional.model_copy(deep=True) if professional else None

    def save_professional(self, professional: Professional) -> None:
        self._professionals[professional.id] = professional.model_copy(deep=True)

    # --- Appointments ---

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        appointment = self._appointments.get(appointment_id)
        return appointment.model_copy() if appointment else None

    def list_appointments(
        self, day: Optional[date] = None, professional_id: Optional[str] = None
    ) -> list[Appointment]:
        return [
            a.model_copy()
            for a in self._appointments.values()
            if (day is None or a.date == day)
            and (professional_id is None or a.professional_id == professional_id)
        ]

    def insert_appointment(self, appointment: Appointment) -> None:
        if any(a.protocol == appointment.protocol for a in self._appointments.values()):
            raise DuplicateProtocolError(f"Protocol {appointment.protocol} already exists")
        self._appointments[appointment.id] = appointment.model_copy()

    def update_appointment(self, appointment: Appointment) -> None:
        if appointment.id not in self._appointments:
            raise NotFoundError(f"Appointment {appointment.id} not found")
        self._appointments[appointment.id] = appointment.model_copy()

    # --- Blocked slots & overrides ---

    def list_blocked_slots(self, professional_id: str, day: date) -> list[BlockedSlot]:
        return [
            b.model_copy()
            for b in self._blocked.values()
            if b.professional_id == professional_id and b.date == day
        ]

    def add_blocked_slot(self, slot: BlockedSlot) -> None:
        self._blocked[slot.id] = slot.model_copy()

    def remove_blocked_slot(self, slot_id: str) -> None:
        if self._blocked.pop(slot_id, None) is None:
            raise NotFoundError(f"Blocked slot {slot_id} not found")

    def get_override(self, professional_id: str, day: date) -> Optional[AvailabilityOverride]:
        override = self._overrides.get((professional_id, day))
        return override.model_copy(deep=True) if override else None

    def save_override(self, override: AvailabilityOverride) -> None:
        self._overrides[(override.professional_id, override.date)] = override.model_copy(deep=True)

    def delete_override(self, professional_id: str, day: date) -> None:
        self._overrides.pop((professional_id, day), None)

    # --- Queue ---

    def list_queue_entries(self) -> list[QueueEntry]:
        return [e.model_copy() for e in self._queue.values()]

    def next_queue_sequence(self) -> int:
        self._queue_sequence += 1
        return self._queue_sequence

    def insert_queue_entry(self, entry: QueueEntry) -> None:
        self._queue[entry.id] = entry.model_copy()

    def update_queue_entry(self, entry: QueueEntry) -> None:
        if entry.id not in self._queue:
            raise NotFoundError(f"Queue entry {entry.id} not found")
        self._queue[entry.id] = entry.model_copy()

    def delete_queue_entry(self, entry_id: str) -> None:
        if self._queue.pop(entry_id, None) is None:
            raise NotFoundError(f"Queue entry {entry_id} not found")
