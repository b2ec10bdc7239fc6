# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Booking time windows, conflict detection and automatic table assignment."""

from .assignment import Assignment, AutoAssigner
from .conflicts import ConflictDetector
from .timeslots import booking_window, minutes_to_time, time_to_minutes, windows_overlap

__all__ = [
    "Assignment",
    "AutoAssigner",
    "ConflictDetector",
    "booking_window",
    "minutes_to_time",
    "time_to_minutes",
    "windows_overlap",
]
