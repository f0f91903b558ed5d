"""
Beacon Tracing Client

Creates spans, dispatches lifecycle hooks and hands records to the sink.

Hooks:
- ``span_start`` - called with the new span, after its attributes are set
- ``span_end``   - called with the span once it is closed
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Protocol

import structlog

from beacon.core.config import BeaconConfig, get_config
from beacon.observability.context import (
    Scope,
    get_client,
    get_current_scope,
)
from beacon.observability.hooks import HookRegistry, Unsubscribe
from beacon.observability.semantic import SpanAttributes
from beacon.observability.sink import InMemorySink, ReportingSink
from beacon.observability.types import CheckIn, Span, SpanStatus

logger = structlog.get_logger(__name__)

SPAN_START = "span_start"
SPAN_END = "span_end"


class Integration(Protocol):
    """Something that hooks itself into a client once."""

    name: str

    def setup(self, client: "TracingClient") -> None:
        ...


class TracingClient:
    """
    Tracing client.

    Spans are owned by the client: it creates them, notifies subscribers,
    and forwards them to the sink when they end.
    """

    def __init__(
        self,
        config: Optional[BeaconConfig] = None,
        sink: Optional[ReportingSink] = None,
    ):
        self.config = config or get_config()
        self.sink = sink or InMemorySink()
        self.sdk_metadata: Dict[str, Any] = {"name": "beacon", "packages": []}

        self._hooks = HookRegistry()
        self._integrations: Dict[str, Integration] = {}

        self._stats = {
            "spans_started": 0,
            "spans_ended": 0,
            "check_ins_sent": 0,
            "exceptions_sent": 0,
            "delivery_errors": 0,
        }

    # === Hooks ===

    def on(self, event: str, callback: Callable[..., Any]) -> Unsubscribe:
        """Subscribe to a client lifecycle event."""
        return self._hooks.subscribe(event, callback)

    def on_span_start(self, callback: Callable[[Span], Any]) -> Unsubscribe:
        return self.on(SPAN_START, callback)

    def emit(self, event: str, *args: Any) -> None:
        self._hooks.emit(event, *args)

    # === Integrations ===

    def add_integration(self, integration: Integration) -> None:
        """Install an integration. Installing the same name twice is a no-op."""
        if integration.name in self._integrations:
            logger.debug("Integration already installed", integration=integration.name)
            return

        self._integrations[integration.name] = integration
        integration.setup(self)
        logger.debug("Integration installed", integration=integration.name)

    def get_integration(self, name: str) -> Optional[Integration]:
        return self._integrations.get(name)

    # === Spans ===

    def start_span(
        self,
        name: str,
        op: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
        parent: Optional[Span] = None,
    ) -> Span:
        """Start a span and notify ``span_start`` subscribers."""
        attrs = dict(attributes or {})
        if op is not None:
            attrs.setdefault(SpanAttributes.OP, op)

        span = Span(description=name, attributes=attrs)
        if parent is not None:
            span.trace_id = parent.trace_id
            span.parent_span_id = parent.span_id

        self._stats["spans_started"] += 1
        self.emit(SPAN_START, span)
        return span

    def end_span(self, span: Span, status: Optional[SpanStatus] = None) -> None:
        """Close a span and hand it to the sink."""
        if not span.is_recording:
            logger.warning("Span already ended", description=span.description)
            return

        if status is not None:
            span.set_status(status)
        span.end()

        self._stats["spans_ended"] += 1
        self.emit(SPAN_END, span)
        self._deliver("capture_span", span)

    # === Scope ===

    def get_current_scope(self) -> Scope:
        return get_current_scope()

    def set_transaction_name(self, name: str) -> None:
        get_current_scope().set_transaction_name(name)

    # === Reporting ===

    def capture_check_in(self, check_in: CheckIn) -> Optional[str]:
        """Report a check-in. Returns its id, or None if delivery failed."""
        check_in_id = self._deliver("capture_check_in", check_in)
        if check_in_id is not None:
            self._stats["check_ins_sent"] += 1
        return check_in_id

    def capture_exception(self, exception: BaseException) -> Optional[str]:
        """Report an exception. Returns the event id, or None if delivery failed."""
        event_id = self._deliver("capture_exception", exception)
        if event_id is not None:
            self._stats["exceptions_sent"] += 1
        return event_id

    def _deliver(self, method: str, record: Any) -> Any:
        # A failing sink must never replace the error the caller is handling
        try:
            return getattr(self.sink, method)(record)
        except Exception as e:
            self._stats["delivery_errors"] += 1
            logger.warning(
                "Telemetry delivery failed",
                method=method,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)


# === Module-level helpers ===

def start_span(
    name: str,
    op: Optional[str] = None,
    attributes: Optional[Dict[str, Any]] = None,
) -> Optional[Span]:
    """Start a span on the bound client, or return None when none is bound."""
    client = get_client()
    if client is None:
        return None
    return client.start_span(name, op=op, attributes=attributes)


def set_transaction_name(name: str) -> None:
    get_current_scope().set_transaction_name(name)


def capture_check_in(check_in: CheckIn) -> Optional[str]:
    client = get_client()
    if client is None:
        logger.debug("No client bound, dropping check-in", monitor_slug=check_in.monitor_slug)
        return None
    return client.capture_check_in(check_in)


def capture_exception(exception: BaseException) -> Optional[str]:
    client = get_client()
    if client is None:
        logger.debug("No client bound, dropping exception", error_type=type(exception).__name__)
        return None
    return client.capture_exception(exception)
