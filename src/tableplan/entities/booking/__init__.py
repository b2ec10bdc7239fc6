# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Booking entity (reservations, table assignment and conflicts)."""

from .endpoint import BookingEndpoint
from .table import BookingsTable, booking_hash, management_hashes

__all__ = ["BookingEndpoint", "BookingsTable", "booking_hash", "management_hashes"]
