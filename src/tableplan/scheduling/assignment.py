# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Automatic table assignment for unassigned bookings.

The assigner picks the smallest active table that fits the party and is
free for the booking window plus a 30-minute buffer. When every suitable
table is taken it tries to free one by moving the bookings that block it to
other free tables.

The assigner only plans: it returns Assignment objects and the caller
persists them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from ..floorplan.reconcile import table_number_key
from .timeslots import (
    DEFAULT_BUFFER,
    DEFAULT_DURATION,
    booking_start,
    booking_window,
    parse_date,
    windows_overlap,
)

logger = logging.getLogger(__name__)

ASSIGNMENT_THRESHOLD = timedelta(hours=2)

AUTO = "auto"
AUTO_REASSIGN = "auto_reassign"
AUTO_CONFLICT_RESOLVED = "auto_conflict_resolved"
MANUAL = "manual"


@dataclass(frozen=True)
class Assignment:
    booking_id: str
    table_id: str
    assignment_type: str
    previous_table_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "table_id": self.table_id,
            "assignment_type": self.assignment_type,
            "previous_table_id": self.previous_table_id,
        }


class AutoAssigner:
    def __init__(
        self,
        duration: int = DEFAULT_DURATION,
        buffer: int = DEFAULT_BUFFER,
        threshold: timedelta = ASSIGNMENT_THRESHOLD,
    ):
        self.duration = duration
        self.buffer = buffer
        self.threshold = threshold

    def is_due(self, booking: dict[str, Any], now: datetime | None = None) -> bool:
        """True when the booking starts in the future but within the threshold."""
        now = now or datetime.now()
        until = booking_start(booking) - now
        return timedelta(0) < until <= self.threshold

    def blocking_bookings(
        self,
        booking: dict[str, Any],
        table_id: Any,
        bookings: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Bookings on ``table_id`` that collide with ``booking`` (buffer included)."""
        day = parse_date(booking["booking_date"])
        window = booking_window(booking, self.duration)
        result = []
        for other in bookings:
            if (
                other.get("table_id") != table_id
                or other.get("status") == "cancelled"
                or other.get("id") == booking.get("id")
                or parse_date(other["booking_date"]) != day
            ):
                continue
            if windows_overlap(window, booking_window(other, self.duration), self.buffer):
                result.append(other)
        return result

    def suitable_tables(
        self, booking: dict[str, Any], tables: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Active tables seating the party, smallest first."""
        guests = booking["guest_count"]
        return sorted(
            (t for t in tables if t.get("is_active", True) and t["capacity"] >= guests),
            key=lambda t: (t["capacity"], table_number_key(t.get("table_number"))),
        )

    def find_best_table(
        self,
        booking: dict[str, Any],
        tables: list[dict[str, Any]],
        bookings: list[dict[str, Any]],
        exclude: set[Any] | None = None,
    ) -> dict[str, Any] | None:
        """Smallest suitable table with no colliding booking, or None."""
        for table in self.suitable_tables(booking, tables):
            if exclude and table["id"] in exclude:
                continue
            if not self.blocking_bookings(booking, table["id"], bookings):
                return table
        return None

    def assign(
        self,
        booking: dict[str, Any],
        tables: list[dict[str, Any]],
        bookings: list[dict[str, Any]],
    ) -> list[Assignment]:
        """Plan the assignment of ``booking``.

        Returns:
            ``[Assignment(auto)]`` when a free table exists; the moves of the
            blocking bookings followed by ``auto_conflict_resolved`` for this
            booking when a table can be freed; ``[]`` otherwise.
        """
        table = self.find_best_table(booking, tables, bookings)
        if table is not None:
            return [Assignment(booking["id"], table["id"], AUTO)]
        return self.resolve_conflict(booking, tables, bookings)

    def resolve_conflict(
        self,
        booking: dict[str, Any],
        tables: list[dict[str, Any]],
        bookings: list[dict[str, Any]],
    ) -> list[Assignment]:
        for table in self.suitable_tables(booking, tables):
            blockers = self.blocking_bookings(booking, table["id"], bookings)
            if not blockers or any(b.get("status") != "confirmed" for b in blockers):
                continue

            # Simulate the moves one by one so two blockers cannot land on the same table
            simulated = [dict(b) for b in bookings]
            by_id = {b["id"]: b for b in simulated}
            moves: list[Assignment] = []
            for blocker in blockers:
                alternative = self.find_best_table(
                    blocker, tables, simulated, exclude={table["id"]}
                )
                if alternative is None:
                    break
                by_id[blocker["id"]]["table_id"] = alternative["id"]
                moves.append(
                    Assignment(blocker["id"], alternative["id"], AUTO_REASSIGN, table["id"])
                )
            else:
                logger.info(
                    "Freed table %s for booking %s by moving %d booking(s)",
                    table["id"],
                    booking["id"],
                    len(moves),
                )
                return moves + [Assignment(booking["id"], table["id"], AUTO_CONFLICT_RESOLVED)]
        return []


__all__ = [
    "ASSIGNMENT_THRESHOLD",
    "AUTO",
    "AUTO_CONFLICT_RESOLVED",
    "AUTO_REASSIGN",
    "Assignment",
    "AutoAssigner",
    "MANUAL",
]
