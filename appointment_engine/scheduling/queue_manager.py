"""
Walk-in queue with dense positions and a static ETA heuristic.

Waiting entries always hold positions ``1..N`` in enqueue order. Every
mutation that takes an entry out of ``waiting`` (call, removal) finishes
by renumbering from a fresh read of storage, never by applying a delta to
positions it remembers.

The manager does not lock. The scheduler calls it while holding the
tenant lock, which is what makes ``call_next`` safe for two staff members
pressing "next" at once.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from appointment_engine.errors import (
    InvalidTransitionError,
    NotFoundError,
    QueueDisabledError,
    QueueFullError,
    RepositoryError,
    ValidationError,
)
from appointment_engine.repository import Repository
from appointment_engine.schemas.queue_schema import QueueEntry, QueueStatus
from appointment_engine.schemas.settings_schema import ShopSettings

logger = logging.getLogger(__name__)


@dataclass
class QueueUpdate:
    """Result of a queue mutation: the entry acted on and everyone who moved."""

    entry: QueueEntry
    moved: list[QueueEntry] = field(default_factory=list)


def estimated_wait(position: int, settings: ShopSettings) -> int:
    return position * settings.average_service_minutes


class QueueManager:
    """FIFO waiting list for one tenant."""

    def __init__(
        self,
        repository: Repository,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._repository = repository
        self._clock = clock

    # --- Reads ---

    def waiting_entries(self) -> list[QueueEntry]:
        """Waiting entries in enqueue order."""
        waiting = [e for e in self._repository.list_queue_entries()
                   if e.status == QueueStatus.WAITING]
        return sorted(waiting, key=lambda e: e.sequence)

    def list_entries(self) -> list[QueueEntry]:
        """All entries, waiting ones first by position, then the rest by call order."""
        entries = self._repository.list_queue_entries()
        waiting = sorted((e for e in entries if e.status == QueueStatus.WAITING),
                         key=lambda e: e.sequence)
        others = sorted((e for e in entries if e.status != QueueStatus.WAITING),
                        key=lambda e: e.sequence)
        return waiting + others

    def get_entry(self, appointment_id: str) -> Optional[QueueEntry]:
        for entry in self._repository.list_queue_entries():
            if entry.appointment_id == appointment_id:
                return entry
        return None

    def get_position(self, appointment_id: str) -> Optional[int]:
        entry = self.get_entry(appointment_id)
        if entry is None or entry.status != QueueStatus.WAITING:
            return None
        return entry.position

    def peek_next(self) -> Optional[QueueEntry]:
        waiting = self.waiting_entries()
        return waiting[0] if waiting else None

    def has_capacity(self, settings: ShopSettings) -> bool:
        return settings.queue_enabled and len(self.waiting_entries()) < settings.max_queue_size

    # --- Mutations ---

    def enqueue(self, appointment_id: str, settings: ShopSettings) -> QueueEntry:
        """Append a waiting entry at the tail.

        Raises:
            QueueDisabledError: If the shop has the queue switched off.
            QueueFullError: If ``max_queue_size`` entries are already waiting.
            ValidationError: If the appointment already has an entry.
        """
        if not settings.queue_enabled:
            raise QueueDisabledError("The walk-in queue is disabled")
        if self.get_entry(appointment_id) is not None:
            raise ValidationError(f"Appointment {appointment_id} is already in the queue")

        waiting = self.waiting_entries()
        if len(waiting) >= settings.max_queue_size:
            raise QueueFullError(
                f"Queue is full ({len(waiting)}/{settings.max_queue_size} waiting)"
            )

        position = len(waiting) + 1
        entry = QueueEntry(
            id=uuid.uuid4().hex,
            appointment_id=appointment_id,
            sequence=self._repository.next_queue_sequence(),
            position=position,
            estimated_wait=estimated_wait(position, settings),
            created_at=self._clock(),
        )
        self._repository.insert_queue_entry(entry)
        logger.info("Enqueued appointment %s at position %d", appointment_id, position)
        return entry.model_copy()

    def call_next(self, settings: ShopSettings) -> Optional[QueueUpdate]:
        """Call the head of the queue. Returns None when nobody is waiting."""
        head = self.peek_next()
        if head is None:
            logger.debug("call_next on empty queue")
            return None
        return self.call(head.appointment_id, settings)

    def call(self, appointment_id: str, settings: ShopSettings) -> QueueUpdate:
        """Move a specific waiting entry to ``called`` and compact the rest."""
        entry = self._require_entry(appointment_id)
        if entry.status != QueueStatus.WAITING:
            raise InvalidTransitionError(
                f"Queue entry for {appointment_id} is '{entry.status.value}', not waiting"
            )

        called = entry.model_copy(update={
            "status": QueueStatus.CALLED,
            "position": None,
            "estimated_wait": 0,
            "called_at": self._clock(),
        })
        self._repository.update_queue_entry(called)
        moved = self.renumber(settings)
        logger.info("Called appointment %s from position %s", appointment_id, entry.position)
        return QueueUpdate(entry=called, moved=moved)

    def mark_on_way(self, appointment_id: str) -> QueueEntry:
        entry = self._require_entry(appointment_id)
        if entry.status != QueueStatus.CALLED:
            raise InvalidTransitionError(
                f"Queue entry for {appointment_id} is '{entry.status.value}', not called"
            )
        onway = entry.model_copy(update={"status": QueueStatus.ONWAY, "onway_at": self._clock()})
        self._repository.update_queue_entry(onway)
        return onway

    def remove(self, appointment_id: str, settings: ShopSettings) -> Optional[QueueUpdate]:
        """Delete the appointment's entry, if any, and close the gap it leaves."""
        entry = self.get_entry(appointment_id)
        if entry is None:
            return None
        self._repository.delete_queue_entry(entry.id)
        moved = self.renumber(settings)
        logger.info("Removed appointment %s from the queue", appointment_id)
        return QueueUpdate(entry=entry, moved=moved)

    def renumber(self, settings: ShopSettings) -> list[QueueEntry]:
        """Recompute waiting positions and ETAs from storage.

        A failed write leaves unknown partial state, so the recovery path
        re-reads and recomputes everything once more instead of replaying
        the failed step. A second failure propagates.
        """
        try:
            return self._renumber_from_storage(settings)
        except RepositoryError:
            logger.warning("Queue renumbering failed, recomputing from a fresh read",
                           exc_info=True)
            return self._renumber_from_storage(settings)

    def _renumber_from_storage(self, settings: ShopSettings) -> list[QueueEntry]:
        moved = []
        for position, entry in enumerate(self.waiting_entries(), start=1):
            wait = estimated_wait(position, settings)
            if entry.position == position and entry.estimated_wait == wait:
                continue
            updated = entry.model_copy(update={"position": position, "estimated_wait": wait})
            self._repository.update_queue_entry(updated)
            moved.append(updated)
        return moved

    def _require_entry(self, appointment_id: str) -> QueueEntry:
        entry = self.get_entry(appointment_id)
        if entry is None:
            raise NotFoundError(f"No queue entry for appointment {appointment_id}")
        return entry
