# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Domain errors raised by the floor-plan editor and the booking workflow.

Both derive from ValueError so the endpoint layer reports them as client
errors without special casing.
"""

from __future__ import annotations


class LayoutError(ValueError):
    """Invalid floor-plan operation (unknown table or structure, bad size...)."""


class BookingError(ValueError):
    """Invalid booking operation (capacity, double booking, bad time...)."""


__all__ = ["BookingError", "LayoutError"]
