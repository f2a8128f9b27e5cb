"""Tests for the appointment state machine."""

import pytest

from appointment_engine.errors import InvalidTransitionError
from appointment_engine.scheduling.state_machine import (
    AppointmentStateMachine,
    AppointmentTrigger,
)
from appointment_engine.schemas.appointment_schema import AppointmentStatus


@pytest.fixture
def state_machine():
    return AppointmentStateMachine()


class TestInitialState:
    def test_starts_pending(self, state_machine):
        assert state_machine.current_state == AppointmentStatus.PENDING

    def test_not_terminal_at_start(self, state_machine):
        assert not state_machine.is_terminal()


class TestHappyPath:
    def test_confirm(self, state_machine):
        assert state_machine.transition(AppointmentTrigger.CONFIRM) == AppointmentStatus.CONFIRMED

    def test_full_queue_path_to_completed(self, state_machine):
        state_machine.transition(AppointmentTrigger.CONFIRM)
        state_machine.transition(AppointmentTrigger.ENQUEUE)
        state_machine.transition(AppointmentTrigger.CALL)
        state_machine.transition(AppointmentTrigger.MARK_ON_WAY)
        new = state_machine.transition(AppointmentTrigger.COMPLETE)
        assert new == AppointmentStatus.COMPLETED
        assert state_machine.is_terminal()

    def test_enqueue_after_confirm(self, state_machine):
        state_machine.transition(AppointmentTrigger.CONFIRM)
        assert state_machine.transition(AppointmentTrigger.ENQUEUE) == AppointmentStatus.INQUEUE

    def test_call_pending_client_holding_a_place(self, state_machine):
        assert state_machine.transition(AppointmentTrigger.CALL) == AppointmentStatus.CALLED

    def test_call_confirmed_without_queue(self):
        sm = AppointmentStateMachine(AppointmentStatus.CONFIRMED)
        assert sm.transition(AppointmentTrigger.CALL) == AppointmentStatus.CALLED


class TestIdempotentConfirm:
    @pytest.mark.parametrize("status", [
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.INQUEUE,
        AppointmentStatus.CALLED,
        AppointmentStatus.ONWAY,
    ])
    def test_confirm_is_noop_after_confirmation(self, status):
        sm = AppointmentStateMachine(status)
        assert sm.transition(AppointmentTrigger.CONFIRM) == status


class TestTerminalStates:
    @pytest.mark.parametrize("status", [
        AppointmentStatus.PENDING,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.INQUEUE,
        AppointmentStatus.CALLED,
        AppointmentStatus.ONWAY,
    ])
    def test_cancel_from_any_active_state(self, status):
        sm = AppointmentStateMachine(status)
        assert sm.transition(AppointmentTrigger.CANCEL) == AppointmentStatus.CANCELLED

    @pytest.mark.parametrize("status", [AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED])
    @pytest.mark.parametrize("trigger", list(AppointmentTrigger))
    def test_terminal_states_reject_everything(self, status, trigger):
        sm = AppointmentStateMachine(status)
        with pytest.raises(InvalidTransitionError):
            sm.transition(trigger)
        assert sm.current_state == status

    def test_terminal_has_no_valid_triggers(self):
        assert AppointmentStateMachine(AppointmentStatus.CANCELLED).get_valid_triggers() == []


class TestInvalidTransitions:
    def test_mark_on_way_requires_called(self, state_machine):
        with pytest.raises(InvalidTransitionError, match="mark_on_way"):
            state_machine.transition(AppointmentTrigger.MARK_ON_WAY)

    def test_enqueue_requires_confirmation(self, state_machine):
        with pytest.raises(InvalidTransitionError, match="enqueue"):
            state_machine.transition(AppointmentTrigger.ENQUEUE)
        assert state_machine.current_state == AppointmentStatus.PENDING

    def test_enqueue_twice_rejected(self):
        sm = AppointmentStateMachine(AppointmentStatus.INQUEUE)
        with pytest.raises(InvalidTransitionError):
            sm.transition(AppointmentTrigger.ENQUEUE)

    def test_error_lists_valid_triggers(self):
        sm = AppointmentStateMachine(AppointmentStatus.CALLED)
        with pytest.raises(InvalidTransitionError, match="Valid triggers"):
            sm.transition(AppointmentTrigger.ENQUEUE)

    def test_failed_transition_keeps_state(self, state_machine):
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(AppointmentTrigger.MARK_ON_WAY)
        assert state_machine.current_state == AppointmentStatus.PENDING


class TestValidTriggers:
    def test_valid_triggers_from_pending(self, state_machine):
        assert state_machine.get_valid_triggers() == [
            AppointmentTrigger.CONFIRM,
            AppointmentTrigger.CALL,
            AppointmentTrigger.COMPLETE,
            AppointmentTrigger.CANCEL,
        ]

    def test_can_transition(self):
        sm = AppointmentStateMachine(AppointmentStatus.CALLED)
        assert sm.can_transition(AppointmentTrigger.MARK_ON_WAY)
        assert not sm.can_transition(AppointmentTrigger.ENQUEUE)
