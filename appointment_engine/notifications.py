"""
Outbound notification hook.

The scheduler publishes lifecycle events here once a mutation has been
committed. Delivery (push, WhatsApp, e-mail) belongs to whoever subscribes;
the scheduler never waits on it and a failing handler never fails the
operation that produced the event.
"""

import logging
from concurrent.futures import Executor
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    APPOINTMENT_CREATED = "appointment_created"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    APPOINTMENT_CANCELLED = "appointment_cancelled"
    APPOINTMENT_COMPLETED = "appointment_completed"
    CLIENT_CALLED = "client_called"
    CLIENT_ON_WAY = "client_on_way"
    QUEUE_POSITION_CHANGED = "queue_position_changed"


class NotificationEvent(BaseModel):
    """Payload handed to subscribers."""
    type: NotificationType
    tenant_id: str
    appointment_id: str
    protocol: Optional[str] = None
    client_phone: Optional[str] = None
    queue_position: Optional[int] = None
    estimated_wait: Optional[int] = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] = Field(default_factory=dict)


Handler = Callable[[NotificationEvent], None]


class NotificationDispatcher:
    """
    Routes events to subscribed handlers.

    Handlers run inline by default. Pass an ``Executor`` to run them off
    the caller's thread; in both cases the publisher never sees their
    result or their exceptions.
    """

    def __init__(self, executor: Optional[Executor] = None) -> None:
        self._executor = executor
        self._handlers: dict[NotificationType, list[Handler]] = {}

    def subscribe(self, event_type: NotificationType, handler: Handler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Handler subscribed to %s", event_type.value)

    def unsubscribe(self, event_type: NotificationType, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: NotificationEvent) -> None:
        for handler in list(self._handlers.get(event.type, [])):
            if self._executor is not None:
                self._executor.submit(self._invoke, handler, event)
            else:
                self._invoke(handler, event)

    def publish_all(self, events: Iterable[NotificationEvent]) -> None:
        for event in events:
            self.publish(event)

    @staticmethod
    def _invoke(handler: Handler, event: NotificationEvent) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception(
                "Notification handler failed for %s (appointment %s)",
                event.type.value, event.appointment_id,
            )
