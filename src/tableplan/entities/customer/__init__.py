# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Customer entity (guests of a restaurant)."""

from .endpoint import CustomerEndpoint
from .table import CustomersTable

__all__ = ["CustomerEndpoint", "CustomersTable"]
