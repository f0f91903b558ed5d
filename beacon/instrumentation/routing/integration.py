"""
Route instrumentation.

Turns router lifecycle callbacks into ``pageload`` and ``navigation`` spans
and keeps the scope's transaction name on the current route.

Usage:
    client.add_integration(RouterTracingIntegration())
    Router = with_router_instrumentation(MemoryRouter)

    router = Router(routes, history=MemoryHistory("/"))
    router.mount()               # pageload span for "/"
    router.navigate("/about")    # navigation span for "/about"
"""

from __future__ import annotations

import functools
from typing import Any, Callable, List, Optional, TypeVar

import structlog

from beacon.core.config import get_config
from beacon.observability.client import TracingClient
from beacon.observability.context import get_client
from beacon.observability.hooks import Unsubscribe
from beacon.observability.semantic import Origins, SpanAttributes, SpanOps, TransactionSource
from beacon.observability.types import RouteTransition, Span
from beacon.instrumentation.routing.router import BeforeLeaveEvent, RouterHooks

logger = structlog.get_logger(__name__)

INTEGRATION_NAME = "RouterTracing"

R = TypeVar('R')


class RouteTracker:
    """
    Span bookkeeping for one mounted router.

    With ``initial_load`` set, the first lifecycle callback is the initial
    load; every later one is a navigation. A tracker created after the
    session's initial load already happened only sees navigations. Open
    route spans are closed when the next transition starts, or when the
    router unmounts.
    """

    def __init__(
        self,
        client: TracingClient,
        hooks: RouterHooks,
        instrument_page_load: bool = True,
        instrument_navigation: bool = True,
        initial_load: bool = True,
    ):
        self.client = client
        self.hooks = hooks
        self.instrument_page_load = instrument_page_load
        self.instrument_navigation = instrument_navigation

        self._initial_load = initial_load
        self._open_spans: List[Span] = []
        self._unsubscribe: Optional[Unsubscribe] = None

    def attach(self) -> Callable[[], None]:
        """Record the initial load and subscribe to navigations."""
        self._on_mount()
        try:
            self._unsubscribe = self.hooks.subscribe_before_leave(self._on_before_leave)
        except Exception as e:
            logger.debug("Router hooks unavailable, navigation not instrumented", error=str(e))
        return self.detach

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._close_open_spans()

    def _on_mount(self) -> None:
        if not self._initial_load:
            return
        self._initial_load = False

        try:
            path = self.hooks.current_resolved_path()
        except Exception as e:
            logger.debug("Router hooks unavailable, skipping pageload", error=str(e))
            return

        try:
            self.handle(RouteTransition(to_path=path, is_initial_load=True))
        except Exception as e:
            # Instrumentation must never break mounting
            logger.debug("Failed to instrument pageload", to_path=path, error=str(e))

    def _on_before_leave(self, event: BeforeLeaveEvent) -> None:
        is_initial_load = self._initial_load
        self._initial_load = False

        try:
            self.handle(RouteTransition(to_path=event.to_path, is_initial_load=is_initial_load))
        except Exception as e:
            # Instrumentation must never break navigation
            logger.debug("Failed to instrument navigation", to_path=event.to_path, error=str(e))

    def handle(self, transition: RouteTransition) -> Optional[Span]:
        """Emit the span and scope update for one transition."""
        if transition.is_initial_load:
            if not self.instrument_page_load:
                return None
            return self._start_route_span(
                transition.to_path,
                SpanOps.PAGELOAD,
                Origins.PAGELOAD,
            )

        span = None
        if self.instrument_navigation:
            span = self._start_route_span(
                transition.to_path,
                SpanOps.NAVIGATION,
                Origins.NAVIGATION,
            )

        self.client.set_transaction_name(transition.to_path)
        return span

    def _start_route_span(self, path: str, op: str, origin: str) -> Span:
        self._close_open_spans()
        span = self.client.start_span(
            path,
            op=op,
            attributes={
                SpanAttributes.SOURCE: TransactionSource.URL,
                SpanAttributes.OP: op,
                SpanAttributes.ORIGIN: origin,
            },
        )
        self._open_spans.append(span)
        return span

    def _close_open_spans(self) -> None:
        spans, self._open_spans = self._open_spans, []
        for span in spans:
            if span.is_recording:
                self.client.end_span(span)


class RouterTracingIntegration:
    """
    Client integration holding the router instrumentation options.

    Args:
        instrument_page_load: Start a ``pageload`` span on the initial load
        instrument_navigation: Start a ``navigation`` span per route change
        hooks: Adapter from a router object to ``RouterHooks``; by default
            the router itself provides the hooks
    """

    name = INTEGRATION_NAME

    def __init__(
        self,
        instrument_page_load: Optional[bool] = None,
        instrument_navigation: Optional[bool] = None,
        hooks: Optional[Callable[[Any], RouterHooks]] = None,
    ):
        routing = get_config().routing
        self.instrument_page_load = (
            routing.instrument_page_load if instrument_page_load is None else instrument_page_load
        )
        self.instrument_navigation = (
            routing.instrument_navigation if instrument_navigation is None else instrument_navigation
        )
        self._hooks = hooks
        self.client: Optional[TracingClient] = None
        # One initial load per client session, across all routers
        self._initial_load_pending = True

    def setup(self, client: TracingClient) -> None:
        self.client = client

    def instrument(self, router: Any) -> Callable[[], None]:
        """Instrument a mounted router. Returns the teardown callable."""
        hooks = self._hooks(router) if self._hooks is not None else router
        initial_load, self._initial_load_pending = self._initial_load_pending, False
        tracker = RouteTracker(
            self.client,
            hooks,
            instrument_page_load=self.instrument_page_load,
            instrument_navigation=self.instrument_navigation,
            initial_load=initial_load,
        )
        return tracker.attach()


def with_router_instrumentation(router_factory: Callable[..., R]) -> Callable[..., R]:
    """
    Wrap a router class so its instances are instrumented on mount.

    The router must accept a ``root`` callable that it runs inside its
    context when mounting (as ``MemoryRouter`` does). A user-supplied
    ``root`` still runs, after the instrumentation is attached.
    """

    @functools.wraps(router_factory, updated=())
    def instrumented(*args, root: Optional[Callable[[Any], Any]] = None, **kwargs) -> R:
        def instrumented_root(router: Any) -> Callable[[], None]:
            cleanups = []

            client = get_client()
            integration = client.get_integration(INTEGRATION_NAME) if client else None
            if integration is None:
                logger.debug("Router tracing integration not installed")
            else:
                cleanups.append(integration.instrument(router))

            if root is not None:
                cleanup = root(router)
                if cleanup is not None:
                    cleanups.append(cleanup)

            def teardown() -> None:
                for fn in reversed(cleanups):
                    fn()

            return teardown

        return router_factory(*args, root=instrumented_root, **kwargs)

    return instrumented
