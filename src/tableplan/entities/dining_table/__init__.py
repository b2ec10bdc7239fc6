# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Dining table entity (the table inventory of a restaurant)."""

from .endpoint import DiningTableEndpoint
from .table import TablesTable

__all__ = ["DiningTableEndpoint", "TablesTable"]
