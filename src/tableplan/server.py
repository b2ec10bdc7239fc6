# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ASGI application entry point for uvicorn.

Configuration via environment variables (see service_base.config_from_env):
    TABLEPLAN_DB, TABLEPLAN_API_TOKEN, TABLEPLAN_INSTANCE, TABLEPLAN_PORT

Example:
    Run with uvicorn::

        TABLEPLAN_DB=/data/tableplan.db TABLEPLAN_API_TOKEN=secret \\
            uvicorn tableplan.server:app --host 0.0.0.0 --port 8000

    Or via CLI::

        tableplan serve --port 8000

Note:
    The application lifespan calls service.init() on startup and
    service.shutdown() on exit.
"""

from .service_base import TablePlanService, config_from_env

_service = TablePlanService(config=config_from_env())
app = _service.api.app
