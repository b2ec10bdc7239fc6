# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Table layout entity (saved floor plans, one per room)."""

from .endpoint import TableLayoutEndpoint
from .table import TableLayoutsTable

__all__ = ["TableLayoutEndpoint", "TableLayoutsTable"]
