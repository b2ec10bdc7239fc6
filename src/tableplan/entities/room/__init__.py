# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Room entity (dining areas of a restaurant)."""

from .endpoint import RoomEndpoint
from .table import RoomsTable

__all__ = ["RoomEndpoint", "RoomsTable"]
