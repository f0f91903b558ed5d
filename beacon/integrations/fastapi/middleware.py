"""
Beacon FastAPI Middleware

ASGI middleware giving every request its own isolation scope, a
``request_context`` span, and a route-based transaction name.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

from starlette.types import ASGIApp, Message, Receive, Scope as ASGIScope, Send

import structlog

from beacon.observability.context import (
    get_client,
    get_default_scope,
    get_isolation_scope,
    isolation_scope,
)
from beacon.observability.semantic import SpanAttributes, framework_kind_key
from beacon.observability.types import SpanStatus

logger = structlog.get_logger(__name__)


def set_transaction_name_from_route(scope: Dict[str, Any]) -> Optional[str]:
    """
    Name the isolation scope ``"<METHOD> <route path>"`` once routing matched.

    Returns the name, or None if nothing was set.
    """
    if get_isolation_scope() is get_default_scope():
        logger.warning(
            "Isolation scope is still the default isolation scope, skipping setting transaction name"
        )
        return None

    if scope.get("type") != "http":
        return None

    route_path = getattr(scope.get("route"), "path", None)
    if not route_path:
        return None

    method = (scope.get("method") or "GET").upper()
    name = f"{method} {route_path}"
    get_isolation_scope().set_transaction_name(name)
    return name


class BeaconMiddleware:
    """
    Request instrumentation middleware.

    Usage:
        app = FastAPI()
        app.add_middleware(BeaconMiddleware)
    """

    def __init__(
        self,
        app: ASGIApp,
        framework: str = "fastapi",
        exclude_paths: Optional[List[str]] = None,
    ):
        self.app = app
        self.framework = framework
        self.exclude_paths = exclude_paths or ["/health", "/metrics", "/favicon.ico"]

    async def __call__(self, scope: ASGIScope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        with isolation_scope():
            client = get_client()
            if client is None:
                await self.app(scope, receive, send)
                return

            path = scope.get("path", "/")
            method = scope.get("method", "GET")

            span = client.start_span(
                f"{method} {path}",
                attributes={
                    framework_kind_key(self.framework): "request_context",
                    SpanAttributes.HTTP_METHOD: method,
                    SpanAttributes.HTTP_TARGET: path,
                },
            )

            start_time = time.perf_counter()
            status_code = 500
            transaction_name = None

            async def send_wrapper(message: Message) -> None:
                nonlocal status_code, transaction_name
                if message["type"] == "http.response.start":
                    status_code = message["status"]
                    transaction_name = set_transaction_name_from_route(scope)
                await send(message)

            try:
                await self.app(scope, receive, send_wrapper)
            finally:
                # Unhandled errors never reach http.response.start in here
                if transaction_name is None:
                    transaction_name = set_transaction_name_from_route(scope)

                route_path = getattr(scope.get("route"), "path", None)
                if route_path:
                    span.set_attribute(SpanAttributes.HTTP_ROUTE, route_path)
                span.set_attribute(SpanAttributes.HTTP_STATUS_CODE, status_code)

                client.end_span(
                    span,
                    status=SpanStatus.ERROR if status_code >= 500 else SpanStatus.OK,
                )

                logger.debug(
                    "Request completed",
                    method=method,
                    path=path,
                    status_code=status_code,
                    transaction_name=transaction_name,
                    duration_ms=(time.perf_counter() - start_time) * 1000,
                )
