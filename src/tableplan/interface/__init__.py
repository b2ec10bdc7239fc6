# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""REST API and CLI generated from endpoint classes."""

from .api_base import ApiManager, register_api_endpoint
from .cli_base import CliManager, register_endpoint
from .endpoint_base import (
    BaseEndpoint,
    EndpointManager,
    ForbiddenError,
    InvalidTokenError,
    endpoint,
)

__all__ = [
    "ApiManager",
    "BaseEndpoint",
    "CliManager",
    "EndpointManager",
    "ForbiddenError",
    "InvalidTokenError",
    "endpoint",
    "register_api_endpoint",
    "register_endpoint",
]
