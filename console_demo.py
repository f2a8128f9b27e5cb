"""
Offline console demo: runs the scheduling engine against a seeded shop.

Uses the real availability calculator, appointment state machine and
walk-in queue on an in-memory repository. No database, no network.

Usage:
    python console_demo.py
    python console_demo.py --scenario slots --date 2025-03-17
"""

import argparse
import sys
from datetime import date, timedelta
from typing import Optional

from appointment_engine.notifications import NotificationEvent, NotificationType
from appointment_engine.repository import InMemoryRepository
from appointment_engine.scheduler import Scheduler
from appointment_engine.schemas.catalog_schema import Professional, Service

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_SERVICES = [
    Service(id="haircut", name="Corte Masculino", duration=30, price=45.0),
    Service(id="beard", name="Barba Completa", duration=30, price=35.0),
    Service(id="combo", name="Corte + Barba", duration=60, price=70.0),
    Service(id="coloring", name="Coloração", duration=90, price=120.0, visible=False),
]

DEMO_PROFESSIONALS = [
    Professional(id="carlos", name="Carlos Silva", specialties=["fade", "beard"], rating=4.9),
    Professional(id="rafael", name="Rafael Santos", specialties=["classic"], rating=4.7),
]

DEMO_CLIENTS = [
    ("Ana Souza", "(11) 98765-4321", "09:00"),
    ("Bruno Lima", "(11) 91234-5678", "09:30"),
    ("Carla Dias", "(11) 99876-1234", "10:00"),
]


def build_demo_scheduler(tenant_id: str = "demo-shop") -> Scheduler:
    """Create a scheduler whose repository holds the demo catalog."""
    repository = InMemoryRepository()
    for service in DEMO_SERVICES:
        repository.save_service(service)
    for professional in DEMO_PROFESSIONALS:
        repository.save_professional(professional)
    return Scheduler(tenant_id, repository)


def next_weekday(start: date) -> date:
    """Return ``start`` or the first following Monday-Friday day."""
    while start.weekday() >= 5:
        start += timedelta(days=1)
    return start


class ConsoleSession:
    """Prints the engine's behavior for a scripted scenario."""

    def __init__(self, scheduler: Optional[Scheduler] = None) -> None:
        self.scheduler = scheduler or build_demo_scheduler()
        for event_type in NotificationType:
            self.scheduler.notifier.subscribe(event_type, self.on_event)

    def on_event(self, event: NotificationEvent) -> None:
        detail = f" position={event.queue_position}" if event.queue_position else ""
        print(f"{DIM}  >> notify {event.type.value} {event.protocol or event.appointment_id}"
              f"{detail}{RESET}")

    def show_slots(self, day: date, professional_id: str, service_id: str) -> None:
        service = next(s for s in self.scheduler.list_services(include_hidden=True)
                       if s.id == service_id)
        slots = self.scheduler.get_available_time_slots(day, professional_id, service.duration)
        print(f"{BOLD}{service.name} with {professional_id} on {day.isoformat()}{RESET}")
        if not slots:
            print(f"{YELLOW}  Closed.{RESET}")
            return
        for slot in slots:
            color = GREEN if slot.available else RED
            label = "free" if slot.available else "busy"
            print(f"  {color}{slot.time} {label}{RESET}")

    def run_queue(self, day: date) -> None:
        booked = []
        for name, phone, time in DEMO_CLIENTS:
            appt = self.scheduler.create_appointment(name, phone, "haircut", "carlos", day, time)
            booked.append(appt)
            position = self.scheduler.get_queue_position(appt.id)
            print(f"{BLUE}[Booked]{RESET} {name} {time} protocol={appt.protocol} "
                  f"queue={position}")

        print(f"\n{BOLD}Staff calls next{RESET}")
        called = self.scheduler.call_next()
        if called is not None:
            print(f"{GREEN}  Called {called.appointment_id}{RESET}")
            self.scheduler.mark_client_on_way(called.appointment_id)

        print(f"\n{BOLD}{booked[1].client_name} cancels{RESET}")
        self.scheduler.cancel_appointment(booked[1].id)

        print(f"\n{BOLD}Queue now{RESET}")
        for entry in self.scheduler.list_queue():
            print(f"  {entry.status.value:<8} position={entry.position} "
                  f"eta={entry.estimated_wait}min appointment={entry.appointment_id}")

    def run(self, scenario: str, day: date) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  APPOINTMENT ENGINE - Scenario: {scenario}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()
        if scenario == "slots":
            self.show_slots(day, "carlos", "haircut")
        elif scenario == "queue":
            self.run_queue(day)
        else:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            sys.exit(1)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the appointment engine offline.")
    parser.add_argument(
        "--scenario",
        choices=["slots", "queue"],
        default="queue",
        help="Which scenario to run.",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Day to book, YYYY-MM-DD (default: next weekday).",
    )
    args = parser.parse_args(argv)
    day = args.date or next_weekday(date.today() + timedelta(days=1))
    ConsoleSession().run(args.scenario, day)


if __name__ == "__main__":
    main()
