"""Conversions between human time text, slot indexes and display strings.

The working day is split into fixed half-hour slots from WORK_START_HOUR up to
WORK_END_HOUR (exclusive), so 11:00 AM is slot 0 and 7:30 PM is slot 17.
Bookings use the strict parser; listing and rescheduling use the loose one.
"""
import re
from datetime import time

from app.core.errors import FormatError, OutOfBoundsError

WORK_START_HOUR = 11
WORK_END_HOUR = 20
SLOT_MINUTES = 30
SLOT_COUNT = (WORK_END_HOUR - WORK_START_HOUR) * 60 // SLOT_MINUTES

_LOOSE_TIME_RE = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*(am|pm)\s*$", re.IGNORECASE)
STRICT_TIME_RE = re.compile(r"^\d{1,2}:\d{2}\s*(AM|PM)$", re.IGNORECASE)


def _to_24_hour(hour: int, meridiem: str) -> int:
    meridiem = meridiem.lower()
    if meridiem == "am":
        return 0 if hour == 12 else hour
    return hour if hour == 12 else hour + 12


def _slot_for(hour: int, minute: int) -> int | None:
    if hour < WORK_START_HOUR or hour >= WORK_END_HOUR:
        return None
    return (hour - WORK_START_HOUR) * 2 + (1 if minute >= SLOT_MINUTES else 0)


def _parse_clock(text: str) -> tuple[int, int] | None:
    """Return (24h hour, minute) for "H[:MM] AM|PM", or None if malformed."""
    m = _LOOSE_TIME_RE.match(text or "")
    if not m:
        return None
    hour = int(m.group(1))
    minute = int(m.group(2) or 0)
    if not 1 <= hour <= 12 or minute > 59:
        return None
    return _to_24_hour(hour, m.group(3)), minute


def parse_time_to_slot(text: str) -> int | None:
    """Loose parse: "11", "11am", "11:30 PM"... Returns None if malformed or out of hours."""
    parsed = _parse_clock(text)
    if parsed is None:
        return None
    return _slot_for(*parsed)


def parse_strict_time_to_slot(text: str) -> int:
    """Strict parse for new bookings: exactly H:MM AM|PM.

    Raises FormatError when the text does not match and OutOfBoundsError when
    it is a real time outside the working window.
    """
    text = (text or "").strip()
    parsed = _parse_clock(text) if STRICT_TIME_RE.match(text) else None
    if parsed is None:
        raise FormatError(
            "❌ *Invalid Time Format*\n"
            "Use H:MM AM/PM with two-digit minutes.\n"
            "Example: */a Rahul, 9876543210, 2:00 PM, Ring fitting*"
        )
    slot = _slot_for(*parsed)
    if slot is None:
        raise OutOfBoundsError()
    return slot


def _check_slot(slot_index: int) -> None:
    if not 0 <= slot_index < SLOT_COUNT:
        raise ValueError(f"slot index out of range: {slot_index}")


def slot_start_time(slot_index: int) -> time:
    _check_slot(slot_index)
    minutes = WORK_START_HOUR * 60 + slot_index * SLOT_MINUTES
    return time(minutes // 60, minutes % 60)


def _format_12_hour(t: time) -> str:
    hour = t.hour % 12 or 12
    meridiem = "AM" if t.hour < 12 else "PM"
    return f"{hour}:{t.minute:02d} {meridiem}"


def slot_to_display_time(slot_index: int) -> str:
    """Slot start as "H:MM AM|PM", e.g. slot 0 -> "11:00 AM"."""
    return _format_12_hour(slot_start_time(slot_index))


def slot_end_time(slot_index: int) -> time:
    start = slot_start_time(slot_index)
    end_minutes = start.hour * 60 + start.minute + SLOT_MINUTES
    return time(end_minutes // 60, end_minutes % 60)


def slot_to_display_end(slot_index: int) -> str:
    return _format_12_hour(slot_end_time(slot_index))


def slot_to_display_range(slot_index: int) -> str:
    """Slot as "h:mm am - h:mm pm", e.g. slot 2 -> "12:00 pm - 12:30 pm"."""
    return f"{slot_to_display_time(slot_index)} - {slot_to_display_end(slot_index)}".lower()


def all_slots() -> range:
    return range(SLOT_COUNT)
