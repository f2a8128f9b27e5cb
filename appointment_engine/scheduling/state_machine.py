"""
Finite state machine for the appointment lifecycle.

Defines the seven appointment states and the explicit transitions between
them. Staff actions and queue progression are expressed as triggers; a
trigger with no matching transition is rejected rather than silently
corrected.

Usage:
    sm = AppointmentStateMachine(AppointmentStatus.PENDING)
    sm.transition(AppointmentTrigger.CONFIRM)
    assert sm.current_state == AppointmentStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from enum import Enum

from appointment_engine.errors import InvalidTransitionError
from appointment_engine.schemas.appointment_schema import AppointmentStatus

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED})
ACTIVE_STATES = [s for s in AppointmentStatus if s not in TERMINAL_STATES]


class AppointmentTrigger(str, Enum):
    """Events that cause appointment state transitions."""
    CONFIRM = "confirm"
    ENQUEUE = "enqueue"
    CALL = "call"
    MARK_ON_WAY = "mark_on_way"
    COMPLETE = "complete"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_state: AppointmentStatus
    to_state: AppointmentStatus
    trigger: AppointmentTrigger


class AppointmentStateMachine:
    """
    Deterministic lifecycle for one appointment.

    The machine holds only the status; callers load it from the stored
    appointment, apply a trigger, and persist the resulting state. Since
    ``transition`` raises before changing anything, it doubles as the
    validation step ahead of any write.
    """

    TRANSITIONS: list[Transition] = [
        # --- Confirmation ---
        Transition(AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED,
                   AppointmentTrigger.CONFIRM),
        # Already past confirmation: confirming again changes nothing.
        Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.CONFIRMED,
                   AppointmentTrigger.CONFIRM),
        Transition(AppointmentStatus.INQUEUE, AppointmentStatus.INQUEUE,
                   AppointmentTrigger.CONFIRM),
        Transition(AppointmentStatus.CALLED, AppointmentStatus.CALLED,
                   AppointmentTrigger.CONFIRM),
        Transition(AppointmentStatus.ONWAY, AppointmentStatus.ONWAY,
                   AppointmentTrigger.CONFIRM),

        # --- Queue ---
        # A booking can hold a place in line while still pending; it only
        # takes the inqueue status once confirmed.
        Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.INQUEUE,
                   AppointmentTrigger.ENQUEUE),
        Transition(AppointmentStatus.PENDING, AppointmentStatus.CALLED,
                   AppointmentTrigger.CALL),
        Transition(AppointmentStatus.CONFIRMED, AppointmentStatus.CALLED,
                   AppointmentTrigger.CALL),
        Transition(AppointmentStatus.INQUEUE, AppointmentStatus.CALLED,
                   AppointmentTrigger.CALL),
        Transition(AppointmentStatus.CALLED, AppointmentStatus.ONWAY,
                   AppointmentTrigger.MARK_ON_WAY),

        # --- Terminal, from every active state ---
        *[Transition(s, AppointmentStatus.COMPLETED, AppointmentTrigger.COMPLETE)
          for s in ACTIVE_STATES],
        *[Transition(s, AppointmentStatus.CANCELLED, AppointmentTrigger.CANCEL)
          for s in ACTIVE_STATES],
    ]

    def __init__(self, status: AppointmentStatus = AppointmentStatus.PENDING) -> None:
        self._current_state = status

    @property
    def current_state(self) -> AppointmentStatus:
        return self._current_state

    def transition(self, trigger: AppointmentTrigger) -> AppointmentStatus:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new appointment state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                logger.debug(
                    "Appointment transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        logger.warning(
            "Rejected appointment trigger '%s' in state '%s'",
            trigger.value, self._current_state.value,
        )
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can_transition(self, trigger: AppointmentTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[AppointmentTrigger]:
        """Return all triggers valid from the current state."""
        triggers: list[AppointmentTrigger] = []
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger not in triggers:
                triggers.append(t.trigger)
        return triggers

    def is_terminal(self) -> bool:
        """Check if the appointment has reached a terminal state."""
        return self._current_state in TERMINAL_STATES
