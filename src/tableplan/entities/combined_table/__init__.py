# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Combined table entity (tables pushed together for large parties)."""

from .endpoint import CombinedTableEndpoint
from .table import CombinedTablesTable

__all__ = ["CombinedTableEndpoint", "CombinedTablesTable"]
