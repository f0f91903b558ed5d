"""
Beacon FastAPI module.

Wires the request middleware and the global exception filter into an app.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException

from beacon.integrations.fastapi.filters import ExpectedPredicate, GlobalExceptionFilter
from beacon.integrations.fastapi.middleware import BeaconMiddleware


class BeaconModule:
    """
    Root module for FastAPI applications.

    Usage:
        app = FastAPI()
        BeaconModule.for_root(app)
    """

    @staticmethod
    def for_root(
        app: FastAPI,
        is_expected: Optional[ExpectedPredicate] = None,
        exclude_paths: Optional[List[str]] = None,
    ) -> FastAPI:
        app.add_middleware(BeaconMiddleware, exclude_paths=exclude_paths)

        exception_filter = GlobalExceptionFilter(is_expected)
        for exc_class in (Exception, HTTPException, RequestValidationError):
            app.add_exception_handler(exc_class, exception_filter)

        app.state.beacon_exception_filter = exception_filter
        return app
