"""
Beacon Exception Filters

Decide per caught exception whether it is reported before the exception
continues through normal handling.

- ``GlobalExceptionFilter``: a Starlette exception handler. Expected
  errors go straight to FastAPI's default handling; everything else is
  reported first and then handled the same way.
- ``RethrowingExceptionFilter``: for contexts whose default handling just
  rethrows (GraphQL resolvers, background consumers). Client-facing
  errors are rethrown untouched; others are logged, reported and
  rethrown verbatim.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, NoReturn, Optional

from fastapi.exception_handlers import (
    http_exception_handler,
    request_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

import structlog

from beacon.core.errors import ExpectedError
from beacon.observability.client import capture_exception

logger = structlog.get_logger(__name__)

ExpectedPredicate = Callable[[BaseException], bool]


def is_expected_error(exception: BaseException) -> bool:
    """Errors that are part of the API contract rather than faults."""
    return isinstance(exception, (HTTPException, RequestValidationError, ExpectedError))


class GlobalExceptionFilter:
    """
    Global filter reporting unexpected exceptions.

    Register the same instance for ``Exception``, ``HTTPException`` and
    ``RequestValidationError`` (``BeaconModule.for_root`` does this).
    """

    _logger = structlog.get_logger("ExceptionsHandler")

    def __init__(self, is_expected: Optional[ExpectedPredicate] = None):
        self.is_expected = is_expected or is_expected_error

    async def __call__(self, request: Request, exception: Exception) -> Response:
        return await self.catch(exception, request)

    async def catch(self, exception: Exception, request: Request) -> Response:
        if not self.is_expected(exception):
            capture_exception(exception)
        return await self.handle_default(exception, request)

    async def handle_default(self, exception: Exception, request: Request) -> Response:
        """FastAPI's default handling for the exception."""
        if isinstance(exception, RequestValidationError):
            return await request_validation_exception_handler(request, exception)
        if isinstance(exception, HTTPException):
            return await http_exception_handler(request, exception)

        self._logger.error(
            str(exception),
            error_type=type(exception).__name__,
            path=request.url.path,
            exc_info=exception,
        )
        return JSONResponse(
            {"statusCode": 500, "message": "Internal server error"},
            status_code=500,
        )


class RethrowingExceptionFilter:
    """Filter for contexts whose default exception handling rethrows."""

    _logger = structlog.get_logger("ExceptionsHandler")

    def __init__(self, is_client_error: Optional[ExpectedPredicate] = None):
        self.is_client_error = is_client_error or is_expected_error

    def catch(self, exception: BaseException, context: Any = None) -> NoReturn:
        # Neither report nor log client-facing errors
        if self.is_client_error(exception):
            raise exception

        self._logger.error(
            str(exception),
            error_type=type(exception).__name__,
            exc_info=exception,
        )
        capture_exception(exception)
        raise exception

    def wrap(self, resolver: Callable[..., Any]) -> Callable[..., Any]:
        """Route exceptions raised by ``resolver`` through this filter."""
        if asyncio.iscoroutinefunction(resolver):
            @functools.wraps(resolver)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await resolver(*args, **kwargs)
                except Exception as e:
                    self.catch(e)

            return async_wrapper

        @functools.wraps(resolver)
        def sync_wrapper(*args, **kwargs):
            try:
                return resolver(*args, **kwargs)
            except Exception as e:
                self.catch(e)

        return sync_wrapper
