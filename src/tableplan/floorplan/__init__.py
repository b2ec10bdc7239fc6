# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Floor-plan editor: palette, fixtures, canvas geometry, layout state and reconciliation."""

from .fixtures import FIXTURE_TEMPLATES, Fixture
from .geometry import Box, Canvas, Footprint, clamp_drop, normalize_rotation, overlaps, snap
from .layout import FloorPlan, TablePosition
from .reconcile import Reconciliation, reconcile, table_number_key
from .structures import PALETTE, SHAPES, TableStructure, get_structure, list_structures

__all__ = [
    "Box",
    "Canvas",
    "FIXTURE_TEMPLATES",
    "Fixture",
    "FloorPlan",
    "Footprint",
    "PALETTE",
    "Reconciliation",
    "SHAPES",
    "TablePosition",
    "TableStructure",
    "clamp_drop",
    "get_structure",
    "list_structures",
    "normalize_rotation",
    "overlaps",
    "reconcile",
    "snap",
    "table_number_key",
]
