# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Restaurant entity (physical locations of a tenant)."""

from .endpoint import RestaurantEndpoint
from .table import RestaurantsTable

__all__ = ["RestaurantEndpoint", "RestaurantsTable"]
