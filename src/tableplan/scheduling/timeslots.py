# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Clock-time helpers shared by conflict detection and table assignment."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from ..errors import BookingError

DEFAULT_DURATION = 120
DEFAULT_BUFFER = 30
SLOT_MINUTES = 30


def time_to_minutes(value: str | time) -> int:
    """Minutes since midnight for "HH:MM" (seconds are ignored)."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    try:
        hours, minutes = str(value).split(":")[:2]
        result = int(hours) * 60 + int(minutes)
    except (ValueError, TypeError) as e:
        raise BookingError(f"Invalid time '{value}', expected HH:MM") from e
    if not 0 <= int(hours) < 24 or not 0 <= int(minutes) < 60:
        raise BookingError(f"Invalid time '{value}', expected HH:MM")
    return result


def minutes_to_time(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def parse_date(value: str | date) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise BookingError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def booking_window(
    booking: dict[str, Any], default_duration: int = DEFAULT_DURATION
) -> tuple[int, int]:
    """(start, end) minutes of a booking; a missing end_time means start + duration."""
    start = time_to_minutes(booking["start_time"])
    end_time = booking.get("end_time")
    end = time_to_minutes(end_time) if end_time else start + default_duration
    if end <= start:
        end = start + default_duration
    return start, end


def windows_overlap(a: tuple[int, int], b: tuple[int, int], buffer: int = 0) -> bool:
    """True when two windows intersect once ``a`` is widened by ``buffer`` on both sides."""
    return a[0] - buffer < b[1] and b[0] < a[1] + buffer


def booking_start(booking: dict[str, Any]) -> datetime:
    """Naive datetime at which the booking starts."""
    day = parse_date(booking["booking_date"])
    minutes = time_to_minutes(booking["start_time"])
    return datetime.combine(day, time(minutes // 60, minutes % 60))


def slot_of(minutes: int, slot: int = SLOT_MINUTES) -> int:
    return (minutes // slot) * slot


__all__ = [
    "DEFAULT_BUFFER",
    "DEFAULT_DURATION",
    "SLOT_MINUTES",
    "booking_start",
    "booking_window",
    "minutes_to_time",
    "parse_date",
    "slot_of",
    "time_to_minutes",
    "windows_overlap",
]
