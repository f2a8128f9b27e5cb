from appointment_engine.errors import (
    InvalidTransitionError,
    NotFoundError,
    QueueDisabledError,
    QueueFullError,
    SchedulerError,
    SlotUnavailableError,
    ValidationError,
)
from appointment_engine.notifications import NotificationDispatcher, NotificationType
from appointment_engine.repository import InMemoryRepository, Repository
from appointment_engine.scheduler import Scheduler
from appointment_engine.tenants import TenantRegistry

__all__ = [
    "Scheduler", "TenantRegistry", "Repository", "InMemoryRepository",
    "NotificationDispatcher", "NotificationType",
    "SchedulerError", "ValidationError", "SlotUnavailableError",
    "InvalidTransitionError", "NotFoundError", "QueueDisabledError", "QueueFullError",
]
