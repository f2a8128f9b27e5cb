"""Shared utilities used across the scheduling engine."""

import re
from datetime import datetime
from typing import Optional

HOURS_CLOSED = {"", "closed", "fechado"}


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(11) 98765-4321")
        '11987654321'
        >>> normalize_phone("+55 (11) 98765-4321")
        '+5511987654321'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def parse_hhmm(value: str) -> int:
    """Convert an ``HH:MM`` string to minutes after midnight.

    Raises:
        ValueError: If the value is not a valid 24-hour time.
    """
    parsed = datetime.strptime(value.strip(), "%H:%M")
    return parsed.hour * 60 + parsed.minute


def format_hhmm(minutes: int) -> str:
    """Convert minutes after midnight back to ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_hours_range(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse an opening-hours string such as ``"09:00-20:00"`` or ``"09:00 às 20:00"``.

    Returns ``(open, close)`` in minutes, or ``None`` when the day is closed.

    Raises:
        ValueError: If the string is neither closed nor a valid range.
    """
    if value is None or value.strip().lower() in HOURS_CLOSED:
        return None
    times = re.findall(r"\d{1,2}:\d{2}", value)
    if len(times) != 2:
        raise ValueError(f"Unrecognized hours format: {value!r}")
    start, end = (parse_hhmm(t.zfill(5)) for t in times)
    if start >= end:
        raise ValueError(f"Opening time must be before closing time: {value!r}")
    return start, end


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval intersection: touching edges do not overlap."""
    return start_a < end_b and end_a > start_b
