"""Walk-in queue models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class QueueStatus(str, Enum):
    WAITING = "waiting"
    CALLED = "called"
    ONWAY = "onway"
    ATTENDED = "attended"


class QueueEntry(BaseModel):
    """
    Waiting-list record linked to exactly one active appointment.

    ``position`` is only meaningful while the entry is waiting; it is
    cleared once the client is called. ``sequence`` is the enqueue order
    and is the only key used to order waiting entries.
    """
    id: str
    appointment_id: str
    sequence: int
    position: Optional[int] = Field(default=None, ge=1)
    estimated_wait: int = 0
    status: QueueStatus = QueueStatus.WAITING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    called_at: Optional[datetime] = None
    onway_at: Optional[datetime] = None
