# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Booking conflict detection.

Three independent checks run over plain booking/table dicts:

capacity_exceeded
    A party larger than its assigned table, or an unassigned party larger
    than every table of the restaurant.
double_booking
    Two confirmed bookings on the same table and day whose time windows
    overlap.
time_overlap
    A 30-minute slot holding more than 5 confirmed bookings or more than 50
    guests.

Each conflict is a dict with ``id``, ``type``, ``severity``, ``booking_ids``,
``auto_resolvable``, ``details`` and ``suggested_resolutions``.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Any

from .timeslots import (
    DEFAULT_DURATION,
    booking_window,
    minutes_to_time,
    parse_date,
    slot_of,
    time_to_minutes,
    windows_overlap,
)

MAX_BOOKINGS_PER_SLOT = 5
MAX_GUESTS_PER_SLOT = 50


def _confirmed(booking: dict[str, Any]) -> bool:
    return booking.get("status", "confirmed") == "confirmed"


class ConflictDetector:
    """Stateless conflict checks; thresholds can be overridden per instance."""

    def __init__(
        self,
        max_bookings_per_slot: int = MAX_BOOKINGS_PER_SLOT,
        max_guests_per_slot: int = MAX_GUESTS_PER_SLOT,
        default_duration: int = DEFAULT_DURATION,
    ):
        self.max_bookings_per_slot = max_bookings_per_slot
        self.max_guests_per_slot = max_guests_per_slot
        self.default_duration = default_duration

    def detect_capacity_exceeded(
        self, bookings: list[dict[str, Any]], tables: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        capacities = {t["id"]: t["capacity"] for t in tables}
        max_capacity = max((t["capacity"] for t in tables), default=0)
        conflicts = []

        for booking in bookings:
            if not _confirmed(booking):
                continue
            guests = booking["guest_count"]
            table_id = booking.get("table_id")

            if table_id:
                capacity = capacities.get(table_id)
                if not capacity or guests <= capacity:
                    continue
                details = {
                    "conflict_type": "assigned_table_too_small",
                    "guest_count": guests,
                    "table_capacity": capacity,
                    "table_id": table_id,
                }
            else:
                if guests <= max_capacity:
                    continue
                details = {
                    "conflict_type": "no_suitable_table",
                    "guest_count": guests,
                    "max_table_capacity": max_capacity,
                }

            resolutions = []
            if guests > max_capacity:
                resolutions.append({
                    "type": "split_party",
                    "description": "Split large party across adjacent tables",
                    "tables_needed": math.ceil(guests / max_capacity) if max_capacity else None,
                })
            else:
                suitable = sorted(
                    (t for t in tables if t["capacity"] >= guests and t["id"] != table_id),
                    key=lambda t: t["capacity"],
                )
                if suitable:
                    resolutions.append({
                        "type": "reassign_table",
                        "description": f"Move to table with capacity {suitable[0]['capacity']}",
                        "new_table_id": suitable[0]["id"],
                        "new_table_capacity": suitable[0]["capacity"],
                    })

            conflicts.append({
                "id": f"capacity-conflict-{booking['id']}",
                "type": "capacity_exceeded",
                "severity": "high",
                "booking_ids": [booking["id"]],
                "auto_resolvable": any(r["type"] == "reassign_table" for r in resolutions),
                "details": details,
                "suggested_resolutions": resolutions,
            })
        return conflicts

    def detect_table_double_bookings(self, bookings: list[dict[str, Any]]) -> list[dict[str, Any]]:
        by_table: dict[Any, list[dict[str, Any]]] = defaultdict(list)
        for booking in bookings:
            if booking.get("table_id") and _confirmed(booking):
                by_table[booking["table_id"]].append(booking)

        conflicts = []
        for table_id, table_bookings in by_table.items():
            for i, first in enumerate(table_bookings):
                for second in table_bookings[i + 1 :]:
                    if parse_date(first["booking_date"]) != parse_date(second["booking_date"]):
                        continue
                    w1 = booking_window(first, self.default_duration)
                    w2 = booking_window(second, self.default_duration)
                    if not windows_overlap(w1, w2):
                        continue
                    conflicts.append({
                        "id": f"double-booking-{first['id']}-{second['id']}",
                        "type": "double_booking",
                        "severity": "high",
                        "booking_ids": [first["id"], second["id"]],
                        "auto_resolvable": True,
                        "details": {
                            "conflict_type": "table_double_booking",
                            "table_id": table_id,
                            "overlapping_time_slot": {
                                "start": minutes_to_time(max(w1[0], w2[0])),
                                "end": minutes_to_time(min(w1[1], w2[1])),
                            },
                        },
                        "suggested_resolutions": [{
                            "type": "reschedule",
                            "description": "Reschedule one of the conflicting bookings",
                            "booking_id": second["id"],
                        }],
                    })
        return conflicts

    def detect_time_overlaps(self, bookings: list[dict[str, Any]]) -> list[dict[str, Any]]:
        slots: dict[tuple[str, int], list[dict[str, Any]]] = defaultdict(list)
        for booking in bookings:
            if not _confirmed(booking):
                continue
            day = parse_date(booking["booking_date"]).isoformat()
            slots[(day, slot_of(time_to_minutes(booking["start_time"])))].append(booking)

        conflicts = []
        for (day, slot), slot_bookings in sorted(slots.items()):
            guests = sum(b["guest_count"] for b in slot_bookings)
            if len(slot_bookings) <= self.max_bookings_per_slot and (
                guests <= self.max_guests_per_slot
            ):
                continue
            conflicts.append({
                "id": f"time-overlap-{day}-{slot}",
                "type": "time_overlap",
                "severity": "medium",
                "booking_ids": [b["id"] for b in slot_bookings],
                "auto_resolvable": False,
                "details": {
                    "conflict_type": "peak_time_congestion",
                    "date": day,
                    "time_slot": minutes_to_time(slot),
                    "total_bookings": len(slot_bookings),
                    "total_guests": guests,
                },
                "suggested_resolutions": [{
                    "type": "distribute_bookings",
                    "description": "Spread bookings across different time slots",
                }],
            })
        return conflicts

    def detect_all(
        self, bookings: list[dict[str, Any]], tables: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        return (
            self.detect_capacity_exceeded(bookings, tables)
            + self.detect_table_double_bookings(bookings)
            + self.detect_time_overlaps(bookings)
        )


__all__ = ["ConflictDetector", "MAX_BOOKINGS_PER_SLOT", "MAX_GUESTS_PER_SLOT"]
