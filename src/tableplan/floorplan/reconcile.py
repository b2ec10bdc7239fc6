# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Reconcile a saved layout with the live table inventory.

Tables are created and deleted independently of the floor plan, so a stored
layout can drift: it may reference tables that no longer exist, cache an old
table number or capacity, or miss tables added since it was saved.

After reconciliation every active table of the room appears exactly once,
either positioned or unpositioned, and no position refers to a missing or
inactive table.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from .layout import TablePosition

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")


def table_number_key(value: Any) -> list[Any]:
    """Sort key ordering "2" before "10" and "T2" before "T10"."""
    parts = _DIGITS.split(str(value or ""))
    return [(0, int(p), "") if p.isdigit() else (1, 0, p.lower()) for p in parts if p]


@dataclass
class Reconciliation:
    positions: dict[str, dict[str, Any]] = field(default_factory=dict)
    positioned: list[dict[str, Any]] = field(default_factory=list)
    unpositioned: list[dict[str, Any]] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    refreshed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.orphaned or self.refreshed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "positions": self.positions,
            "positioned": self.positioned,
            "unpositioned": self.unpositioned,
            "orphaned": self.orphaned,
            "refreshed": self.refreshed,
            "changed": self.changed,
        }


def _in_room(table: dict[str, Any], room_id: str | None) -> bool:
    if room_id is None:
        return True
    return table.get("room_id") in (None, "", room_id)


def reconcile(
    positions: dict[str, dict[str, Any]] | None,
    tables: list[dict[str, Any]],
    room_id: str | None = None,
) -> Reconciliation:
    """Match stored ``positions`` against inventory ``tables``.

    Args:
        positions: Stored layout, ``{table_id: position_dict}``.
        tables: Inventory records (``id``, ``table_number``, ``capacity``,
            ``is_active``, ``room_id``).
        room_id: Room key; tables assigned to another room are not part of it.

    Returns:
        Reconciliation with the cleaned positions, the positioned entries,
        the unpositioned tables and the ids that were dropped or refreshed.
    """
    inventory = {
        str(t["id"]): t
        for t in tables
        if t.get("is_active", True) and _in_room(t, room_id)
    }
    result = Reconciliation()

    for table_id, data in (positions or {}).items():
        table_id = str(table_id)
        table = inventory.get(table_id)
        if table is None:
            result.orphaned.append(table_id)
            continue

        pos = TablePosition.from_dict(table_id, data)
        number = str(table["table_number"]) if table.get("table_number") is not None else None
        capacity = table.get("capacity")
        if pos.table_number != number or pos.capacity != capacity or not pos.is_configured:
            pos.table_number = number
            pos.capacity = capacity
            pos.is_configured = True
            result.refreshed.append(table_id)

        stored = pos.to_dict()
        result.positions[table_id] = stored
        result.positioned.append(stored)

    result.unpositioned = sorted(
        (t for table_id, t in inventory.items() if table_id not in result.positions),
        key=lambda t: table_number_key(t.get("table_number")),
    )
    result.positioned.sort(key=lambda p: table_number_key(p.get("table_number")))

    if result.orphaned:
        logger.info(
            "Dropped %d orphaned position(s) from room %s: %s",
            len(result.orphaned),
            room_id,
            ", ".join(result.orphaned),
        )
    return result


__all__ = ["Reconciliation", "reconcile", "table_number_key"]
