# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""tableplan: restaurant floor plans, table inventory and bookings."""

from .service_base import ServiceConfig, TablePlanService, config_from_env

__version__ = "0.1.0"

__all__ = ["ServiceConfig", "TablePlanService", "config_from_env"]
