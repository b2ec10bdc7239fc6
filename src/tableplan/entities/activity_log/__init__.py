# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Activity log entity (audit trail of state-changing API calls)."""

from .endpoint import ActivityLogEndpoint
from .table import ActivityLogTable

__all__ = ["ActivityLogEndpoint", "ActivityLogTable"]
