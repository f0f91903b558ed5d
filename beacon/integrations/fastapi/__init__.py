"""
Beacon FastAPI Integration

Request middleware, exception filters and SDK initialization for FastAPI.
"""

from beacon.integrations.fastapi.filters import (
    GlobalExceptionFilter,
    RethrowingExceptionFilter,
    is_expected_error,
)
from beacon.integrations.fastapi.middleware import (
    BeaconMiddleware,
    set_transaction_name_from_route,
)
from beacon.integrations.fastapi.module import BeaconModule
from beacon.integrations.fastapi.sdk import init

__all__ = [
    "GlobalExceptionFilter",
    "RethrowingExceptionFilter",
    "is_expected_error",
    "BeaconMiddleware",
    "set_transaction_name_from_route",
    "BeaconModule",
    "init",
]
