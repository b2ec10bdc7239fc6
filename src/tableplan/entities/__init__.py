# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Entity packages: each holds a ``table.py`` and usually an ``endpoint.py``.

Tables and endpoints are discovered by package scanning, see
SqlDb.discover() and EndpointManager.discover().
"""
