"""Tests for the outbound notification hook."""

from concurrent.futures import ThreadPoolExecutor

from appointment_engine.notifications import (
    NotificationDispatcher,
    NotificationEvent,
    NotificationType,
)
from tests.conftest import EventRecorder, book


def _event(event_type=NotificationType.APPOINTMENT_CREATED):
    return NotificationEvent(type=event_type, tenant_id="shop", appointment_id="a1")


class TestDispatcher:
    def test_routes_by_type(self):
        dispatcher = NotificationDispatcher()
        created, called = EventRecorder(), EventRecorder()
        dispatcher.subscribe(NotificationType.APPOINTMENT_CREATED, created)
        dispatcher.subscribe(NotificationType.CLIENT_CALLED, called)
        dispatcher.publish(_event())
        assert len(created.events) == 1
        assert called.events == []

    def test_failing_handler_does_not_stop_others(self, caplog):
        dispatcher = NotificationDispatcher()
        recorder = EventRecorder()

        def broken(event):
            raise RuntimeError("whatsapp down")

        dispatcher.subscribe(NotificationType.APPOINTMENT_CREATED, broken)
        dispatcher.subscribe(NotificationType.APPOINTMENT_CREATED, recorder)
        dispatcher.publish(_event())
        assert len(recorder.events) == 1
        assert "Notification handler failed" in caplog.text

    def test_unsubscribe(self):
        dispatcher = NotificationDispatcher()
        recorder = EventRecorder()
        dispatcher.subscribe(NotificationType.APPOINTMENT_CREATED, recorder)
        dispatcher.unsubscribe(NotificationType.APPOINTMENT_CREATED, recorder)
        dispatcher.publish(_event())
        assert recorder.events == []

    def test_executor_dispatch(self):
        recorder = EventRecorder()
        with ThreadPoolExecutor(max_workers=2) as executor:
            dispatcher = NotificationDispatcher(executor)
            dispatcher.subscribe(NotificationType.APPOINTMENT_CREATED, recorder)
            dispatcher.publish_all([_event(), _event()])
        assert len(recorder.events) == 2


class TestSchedulerEvents:
    def test_handler_failure_does_not_fail_booking(self, scheduler):
        def broken(event):
            raise RuntimeError("push service down")

        scheduler.notifier.subscribe(NotificationType.APPOINTMENT_CREATED, broken)
        appt = book(scheduler, "10:00")
        assert scheduler.get_appointment(appt.id).protocol == appt.protocol

    def test_created_event_carries_queue_position(self, scheduler, recorder):
        appt = book(scheduler, "10:00")
        created = [e for e in recorder.events
                   if e.type == NotificationType.APPOINTMENT_CREATED]
        assert created[0].appointment_id == appt.id
        assert created[0].queue_position == 1
        assert created[0].tenant_id == "shop-test"

    def test_events_published_after_lock_released(self, scheduler):
        observed = []

        def handler(event):
            # Handlers may read back from the scheduler.
            observed.append(scheduler.get_queue_position(event.appointment_id))

        scheduler.notifier.subscribe(NotificationType.APPOINTMENT_CREATED, handler)
        book(scheduler, "10:00")
        assert observed == [1]
