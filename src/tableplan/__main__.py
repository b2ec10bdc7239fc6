# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for tableplan.

Usage:
    tableplan --help
    tableplan use acme/<restaurant-id>
    tableplan layouts get --room main
    tableplan serve --port 8000
"""

import logging
import os

from .service_base import TablePlanService, config_from_env


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=os.environ.get("TABLEPLAN_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    service = TablePlanService(config=config_from_env())
    service.cli.cli()


if __name__ == "__main__":
    main()
