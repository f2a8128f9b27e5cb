from appointment_engine.scheduling.availability import (
    DaySchedule,
    get_available_time_slots,
    is_slot_available,
)
from appointment_engine.scheduling.queue_manager import QueueManager, QueueUpdate
from appointment_engine.scheduling.settings_provider import SettingsProvider
from appointment_engine.scheduling.state_machine import (
    AppointmentStateMachine,
    AppointmentTrigger,
)

__all__ = [
    "DaySchedule",
    "get_available_time_slots",
    "is_slot_available",
    "QueueManager",
    "QueueUpdate",
    "SettingsProvider",
    "AppointmentStateMachine",
    "AppointmentTrigger",
]
