"""
Command-line entry point for the appointment engine.

Usage:
    Slot grid:    python main.py slots --date 2025-03-17 --professional carlos --duration 30
    Queue demo:   python main.py demo
"""

import argparse
import logging
from datetime import date, timedelta
from typing import Optional

from appointment_engine.config import settings

logger = logging.getLogger(__name__)


def _print_slots(args: argparse.Namespace) -> None:
    from console_demo import build_demo_scheduler

    scheduler = build_demo_scheduler()
    slots = scheduler.get_available_time_slots(args.date, args.professional, args.duration)
    if not slots:
        print(f"Closed on {args.date.isoformat()}")
        return
    for slot in slots:
        print(f"{slot.time}  {'available' if slot.available else 'unavailable'}")


def _run_demo(args: argparse.Namespace) -> None:
    from console_demo import ConsoleSession

    ConsoleSession().run("queue", args.date)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Appointment scheduling and walk-in queue engine.")
    sub = parser.add_subparsers(dest="command", required=True)

    default_day = date.today() + timedelta(days=1)

    slots = sub.add_parser("slots", help="Print the slot grid for a demo professional.")
    slots.add_argument("--date", type=date.fromisoformat, default=default_day)
    slots.add_argument("--professional", default="carlos")
    slots.add_argument("--duration", type=int, default=30)
    slots.set_defaults(handler=_print_slots)

    demo = sub.add_parser("demo", help="Run the walk-in queue scenario.")
    demo.add_argument("--date", type=date.fromisoformat, default=default_day)
    demo.set_defaults(handler=_run_demo)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logger.debug("Running '%s' (queue enabled=%s)", args.command, settings.queue.enabled)
    args.handler(args)


if __name__ == "__main__":
    main()
