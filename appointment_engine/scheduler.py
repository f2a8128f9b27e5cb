"""
Per-tenant scheduling facade.

``Scheduler`` is the single owner of one shop's appointments and queue.
Every mutation runs under the tenant's lock, so bookings, calls and
cancellations are applied one at a time in submission order and a queue
renumbering is never observed half-done. Notifications collected during
a mutation are published after the lock is released, and only if the
mutation succeeded.

Usage:
    scheduler = Scheduler("shop-42", InMemoryRepository())
    slots = scheduler.get_available_time_slots(date(2025, 3, 17), "barber-1", 30)
    appt = scheduler.create_appointment(
        "Ana Souza", "(11) 98765-4321", "haircut", "barber-1", date(2025, 3, 17), "10:00"
    )
    scheduler.call_next()
"""

import functools
import threading
import uuid
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from appointment_engine.config import AppConfig, settings as app_settings
from appointment_engine.errors import (
    DuplicateProtocolError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from appointment_engine.logging_context import get_tenant_logger, tenant_context
from appointment_engine.notifications import (
    NotificationDispatcher,
    NotificationEvent,
    NotificationType,
)
from appointment_engine.repository import InMemoryRepository, Repository
from appointment_engine.scheduling.availability import (
    DaySchedule,
    get_available_time_slots,
    is_slot_available,
)
from appointment_engine.scheduling.protocol import generate_protocol
from appointment_engine.scheduling.queue_manager import QueueManager
from appointment_engine.scheduling.settings_provider import SettingsProvider
from appointment_engine.scheduling.state_machine import (
    AppointmentStateMachine,
    AppointmentTrigger,
)
from appointment_engine.schemas.appointment_schema import (
    Appointment,
    AppointmentRequest,
    AppointmentStatus,
    AvailabilityOverride,
    BlockedSlot,
    TimeSlot,
)
from appointment_engine.schemas.catalog_schema import Professional, Service
from appointment_engine.schemas.queue_schema import QueueEntry
from appointment_engine.schemas.settings_schema import ShopSettings, ShopSettingsUpdate
from appointment_engine.utils import normalize_phone

logger = get_tenant_logger(__name__)

MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15

F = TypeVar("F", bound=Callable[..., Any])


def _serialized(method: F) -> F:
    """Run the method under the tenant lock and publish its events afterwards."""

    @functools.wraps(method)
    def wrapper(self: "Scheduler", *args: Any, **kwargs: Any) -> Any:
        with tenant_context(self.tenant_id):
            with self._lock:
                self._depth += 1
                try:
                    result = method(self, *args, **kwargs)
                finally:
                    self._depth -= 1
                    events = self._drain_events() if self._depth == 0 else []
            self._notifier.publish_all(events)
            return result

    return wrapper  # type: ignore[return-value]


class Scheduler:
    """Booking, availability and walk-in queue operations for one tenant."""

    def __init__(
        self,
        tenant_id: str,
        repository: Optional[Repository] = None,
        notifier: Optional[NotificationDispatcher] = None,
        config: AppConfig = app_settings,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.tenant_id = tenant_id
        self._repository: Repository = repository if repository is not None else InMemoryRepository()
        self._notifier = notifier if notifier is not None else NotificationDispatcher()
        self._config = config
        self._clock = clock
        self._settings = SettingsProvider(self._repository, config)
        self._queue = QueueManager(self._repository, clock)
        self._lock = threading.RLock()
        self._depth = 0
        self._pending_events: list[NotificationEvent] = []

    @property
    def notifier(self) -> NotificationDispatcher:
        return self._notifier

    # --- Catalog ---

    @_serialized
    def list_services(self, include_hidden: bool = False) -> list[Service]:
        services = self._repository.list_services()
        return services if include_hidden else [s for s in services if s.visible]

    @_serialized
    def list_professionals(self) -> list[Professional]:
        return self._repository.list_professionals()

    @_serialized
    def set_professional_available(self, professional_id: str, available: bool) -> Professional:
        """Toggle whether a professional accepts new bookings."""
        professional = self._require_professional(professional_id)
        professional = professional.model_copy(update={"available": available})
        self._repository.save_professional(professional)
        logger.info("Professional %s available=%s", professional_id, available)
        return professional

    # --- Settings ---

    @_serialized
    def get_shop_settings(self) -> ShopSettings:
        return self._settings.get()

    @_serialized
    def update_shop_settings(
        self, changes: Union[ShopSettingsUpdate, dict[str, Any]]
    ) -> ShopSettings:
        """Apply a partial settings change.

        Waiting clients get fresh estimates when the average service time
        changes.
        """
        previous = self._settings.get()
        updated = self._settings.update(changes)
        if updated.average_service_minutes != previous.average_service_minutes:
            self._record_moves(self._queue.renumber(updated))
        return updated

    @_serialized
    def invalidate_settings(self) -> None:
        """Forget cached settings, e.g. after another process edited them."""
        self._settings.invalidate()

    # --- Availability ---

    def get_available_time_slots(
        self, day: date, professional_id: str, duration_minutes: int
    ) -> list[TimeSlot]:
        """Annotated slot grid for one professional and day.

        The snapshot is taken under the lock; the computation itself runs
        without it. A professional who is not taking bookings gets the same
        grid with every slot unavailable.

        Raises:
            ValidationError: If the duration is not positive.
            NotFoundError: If the professional does not exist.
        """
        if duration_minutes <= 0:
            raise ValidationError(f"Service duration must be positive, got {duration_minutes}")
        with tenant_context(self.tenant_id):
            with self._lock:
                professional = self._require_professional(professional_id)
                schedule = self._day_schedule(day, professional_id)
            slots = get_available_time_slots(schedule, duration_minutes)
            if not professional.available:
                return [slot.model_copy(update={"available": False}) for slot in slots]
            return slots

    @_serialized
    def add_blocked_slot(
        self,
        professional_id: str,
        day: date,
        start_time: str,
        end_time: str,
        reason: Optional[str] = None,
    ) -> BlockedSlot:
        self._require_professional(professional_id)
        try:
            slot = BlockedSlot(
                id=uuid.uuid4().hex,
                professional_id=professional_id,
                date=day,
                start_time=start_time,
                end_time=end_time,
                reason=reason,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid blocked slot: {exc}") from exc
        self._repository.add_blocked_slot(slot)
        logger.info(
            "Blocked %s-%s on %s for %s", slot.start_time, slot.end_time,
            day.isoformat(), professional_id,
        )
        return slot

    @_serialized
    def remove_blocked_slot(self, slot_id: str) -> None:
        self._repository.remove_blocked_slot(slot_id)

    @_serialized
    def set_availability_override(
        self, professional_id: str, day: date, times: list[str]
    ) -> AvailabilityOverride:
        """Replace the default grid for one professional and day with ``times``."""
        self._require_professional(professional_id)
        try:
            override = AvailabilityOverride(professional_id=professional_id, date=day, times=times)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid availability override: {exc}") from exc
        self._repository.save_override(override)
        return override

    @_serialized
    def clear_availability_override(self, professional_id: str, day: date) -> None:
        self._repository.delete_override(professional_id, day)

    # --- Appointments ---

    @_serialized
    def get_appointment(self, appointment_id: str) -> Appointment:
        return self._require_appointment(appointment_id)

    @_serialized
    def list_appointments(
        self, day: Optional[date] = None, professional_id: Optional[str] = None
    ) -> list[Appointment]:
        appointments = self._repository.list_appointments(day, professional_id)
        return sorted(appointments, key=lambda a: (a.date, a.time, a.created_at))

    @_serialized
    def create_appointment(
        self,
        client_name: str,
        client_phone: str,
        service_id: str,
        professional_id: str,
        day: date,
        time: str,
    ) -> Appointment:
        """
        Book a slot and, when the queue is on, enrol the booking in it.

        Availability is checked again here, under the lock, because the
        slot the client picked may have been taken since it was displayed.

        Raises:
            ValidationError: Bad client details, hidden service or unavailable professional.
            NotFoundError: Unknown service or professional.
            SlotUnavailableError: The interval is no longer free.
            DuplicateProtocolError: Every protocol attempt collided.
        """
        request = self._validate_request(
            client_name, client_phone, service_id, professional_id, day, time
        )

        service = self._repository.get_service(request.service_id)
        if service is None:
            raise NotFoundError(f"Service {request.service_id} not found")
        if not service.visible:
            raise ValidationError(f"Service {service.name} is not offered")
        professional = self._require_professional(request.professional_id)
        if not professional.available:
            raise ValidationError(f"{professional.name} is not taking bookings")

        schedule = self._day_schedule(request.date, request.professional_id)
        if not is_slot_available(schedule, request.time, service.duration):
            logger.info(
                "Slot %s %s for %s no longer available",
                request.date.isoformat(), request.time, request.professional_id,
            )
            raise SlotUnavailableError(
                f"{request.time} on {request.date.isoformat()} is no longer available"
            )

        appointment = self._insert_with_protocol(request, service)
        logger.info(
            "Appointment %s created for %s on %s at %s",
            appointment.protocol, appointment.client_name,
            appointment.date.isoformat(), appointment.time,
        )

        position = None
        settings = self._settings.get()
        if self._queue.has_capacity(settings):
            appointment, entry = self._enqueue(appointment, settings)
            position = entry.position
        elif settings.queue_enabled:
            logger.warning("Queue full, appointment %s not enrolled", appointment.protocol)

        self._record(NotificationType.APPOINTMENT_CREATED, appointment, queue_position=position)
        return appointment

    @_serialized
    def confirm_appointment(self, appointment_id: str) -> Appointment:
        """Confirm a pending booking. Confirming again is a no-op.

        A booking that was already holding a place in line moves on to
        ``inqueue`` once confirmed.
        """
        appointment = self._require_appointment(appointment_id)
        updated = self._apply(appointment, AppointmentTrigger.CONFIRM)
        if updated.status != appointment.status:
            if self._queue.get_position(appointment_id) is not None:
                updated = self._apply(updated, AppointmentTrigger.ENQUEUE)
            self._record(NotificationType.APPOINTMENT_CONFIRMED, updated)
        return updated

    @_serialized
    def cancel_appointment(self, appointment_id: str) -> Appointment:
        appointment = self._require_appointment(appointment_id)
        updated = self._apply(appointment, AppointmentTrigger.CANCEL)
        self._leave_queue(updated)
        self._record(NotificationType.APPOINTMENT_CANCELLED, updated)
        logger.info("Appointment %s cancelled", updated.protocol)
        return updated

    @_serialized
    def complete_appointment(self, appointment_id: str) -> Appointment:
        appointment = self._require_appointment(appointment_id)
        updated = self._apply(appointment, AppointmentTrigger.COMPLETE)
        self._leave_queue(updated)
        self._record(NotificationType.APPOINTMENT_COMPLETED, updated)
        logger.info("Appointment %s completed", updated.protocol)
        return updated

    @_serialized
    def mark_client_on_way(self, appointment_id: str) -> Appointment:
        """Record that a called client is heading to the shop."""
        appointment = self._require_appointment(appointment_id)
        AppointmentStateMachine(appointment.status).transition(AppointmentTrigger.MARK_ON_WAY)
        entry = self._queue.get_entry(appointment_id)
        if entry is not None:
            self._queue.mark_on_way(appointment_id)
        updated = self._apply(appointment, AppointmentTrigger.MARK_ON_WAY)
        self._record(NotificationType.CLIENT_ON_WAY, updated)
        return updated

    @_serialized
    def call_appointment(self, appointment_id: str) -> Appointment:
        """Call a specific client, whether or not they are at the head of the queue."""
        appointment = self._require_appointment(appointment_id)
        AppointmentStateMachine(appointment.status).transition(AppointmentTrigger.CALL)
        if self._queue.get_position(appointment_id) is not None:
            update = self._queue.call(appointment_id, self._settings.get())
            self._record_moves(update.moved)
        updated = self._apply(appointment, AppointmentTrigger.CALL)
        self._record(NotificationType.CLIENT_CALLED, updated)
        return updated

    # --- Queue ---

    @_serialized
    def enqueue(self, appointment_id: str) -> QueueEntry:
        appointment = self._require_appointment(appointment_id)
        _, entry = self._enqueue(appointment, self._settings.get())
        return entry

    @_serialized
    def call_next(self) -> Optional[QueueEntry]:
        """Call the longest-waiting client. Returns None if nobody is waiting."""
        head = self._queue.peek_next()
        if head is None:
            return None

        appointment = self._require_appointment(head.appointment_id)
        AppointmentStateMachine(appointment.status).transition(AppointmentTrigger.CALL)
        update = self._queue.call_next(self._settings.get())
        updated = self._apply(appointment, AppointmentTrigger.CALL)
        self._record(NotificationType.CLIENT_CALLED, updated)
        self._record_moves(update.moved)
        return update.entry

    @_serialized
    def get_queue_position(self, appointment_id: str) -> Optional[int]:
        return self._queue.get_position(appointment_id)

    @_serialized
    def list_queue(self) -> list[QueueEntry]:
        return self._queue.list_entries()

    # --- Internals (caller holds the lock) ---

    def _validate_request(
        self,
        client_name: str,
        client_phone: str,
        service_id: str,
        professional_id: str,
        day: date,
        time: str,
    ) -> AppointmentRequest:
        try:
            request = AppointmentRequest(
                client_name=client_name,
                client_phone=client_phone,
                service_id=service_id,
                professional_id=professional_id,
                date=day,
                time=time,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid booking request: {exc}") from exc

        phone = normalize_phone(request.client_phone)
        digits = phone.lstrip("+")
        if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
            raise ValidationError(f"Invalid phone number: {client_phone!r}")
        return request.model_copy(update={"client_phone": phone})

    def _insert_with_protocol(self, request: AppointmentRequest, service: Service) -> Appointment:
        attempts = self._config.booking.protocol_max_attempts
        for attempt in range(1, attempts + 1):
            now = self._clock()
            appointment = Appointment(
                id=uuid.uuid4().hex,
                protocol=generate_protocol(self._config.booking.protocol_prefix, now),
                client_name=request.client_name,
                client_phone=request.client_phone,
                service_id=service.id,
                professional_id=request.professional_id,
                date=request.date,
                time=request.time,
                duration_minutes=service.duration,
                created_at=now,
                updated_at=now,
            )
            try:
                self._repository.insert_appointment(appointment)
            except DuplicateProtocolError:
                logger.warning(
                    "Protocol %s collided (attempt %d/%d)", appointment.protocol, attempt, attempts
                )
                if attempt == attempts:
                    raise
                continue
            return appointment
        raise DuplicateProtocolError("No protocol attempts configured")

    def _enqueue(
        self, appointment: Appointment, settings: ShopSettings
    ) -> tuple[Appointment, QueueEntry]:
        # Pending bookings take a place in line but keep their status until confirmed.
        holds_place = appointment.status == AppointmentStatus.PENDING
        if not holds_place:
            AppointmentStateMachine(appointment.status).transition(AppointmentTrigger.ENQUEUE)
        entry = self._queue.enqueue(appointment.id, settings)
        updated = appointment if holds_place else self._apply(appointment, AppointmentTrigger.ENQUEUE)
        self._record(
            NotificationType.QUEUE_POSITION_CHANGED, updated,
            queue_position=entry.position, estimated_wait=entry.estimated_wait,
        )
        return updated, entry

    def _leave_queue(self, appointment: Appointment) -> None:
        update = self._queue.remove(appointment.id, self._settings.get())
        if update is not None:
            self._record_moves(update.moved)

    def _apply(self, appointment: Appointment, trigger: AppointmentTrigger) -> Appointment:
        new_status = AppointmentStateMachine(appointment.status).transition(trigger)
        if new_status == appointment.status:
            return appointment
        updated = appointment.model_copy(update={"status": new_status, "updated_at": self._clock()})
        self._repository.update_appointment(updated)
        return updated

    def _day_schedule(self, day: date, professional_id: str) -> DaySchedule:
        return DaySchedule(
            day=day,
            professional_id=professional_id,
            settings=self._settings.get(),
            override=self._repository.get_override(professional_id, day),
            blocked_slots=self._repository.list_blocked_slots(professional_id, day),
            appointments=self._repository.list_appointments(day, professional_id),
        )

    def _require_appointment(self, appointment_id: str) -> Appointment:
        appointment = self._repository.get_appointment(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def _require_professional(self, professional_id: str) -> Professional:
        professional = self._repository.get_professional(professional_id)
        if professional is None:
            raise NotFoundError(f"Professional {professional_id} not found")
        return professional

    def _record(
        self,
        event_type: NotificationType,
        appointment: Appointment,
        queue_position: Optional[int] = None,
        estimated_wait: Optional[int] = None,
    ) -> None:
        self._pending_events.append(NotificationEvent(
            type=event_type,
            tenant_id=self.tenant_id,
            appointment_id=appointment.id,
            protocol=appointment.protocol,
            client_phone=appointment.client_phone,
            queue_position=queue_position,
            estimated_wait=estimated_wait,
            occurred_at=self._clock(),
            data={"status": appointment.status.value},
        ))

    def _record_moves(self, moved: list[QueueEntry]) -> None:
        for entry in moved:
            self._pending_events.append(NotificationEvent(
                type=NotificationType.QUEUE_POSITION_CHANGED,
                tenant_id=self.tenant_id,
                appointment_id=entry.appointment_id,
                queue_position=entry.position,
                estimated_wait=entry.estimated_wait,
                occurred_at=self._clock(),
            ))

    def _drain_events(self) -> list[NotificationEvent]:
        events, self._pending_events = self._pending_events, []
        return events
