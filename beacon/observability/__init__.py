"""
Beacon Observability

Span model, isolation scopes, the tracing client and reporting sinks.
"""

from beacon.observability.types import (
    CheckIn,
    CheckInStatus,
    MonitorConfig,
    MonitorSchedule,
    RouteTransition,
    Span,
    SpanStatus,
)
from beacon.observability.semantic import (
    Origins,
    SpanAttributes,
    SpanOps,
    TransactionSource,
)
from beacon.observability.hooks import HookRegistry
from beacon.observability.context import (
    Scope,
    get_client,
    get_current_scope,
    get_default_scope,
    get_isolation_scope,
    isolation_scope,
    reset_context,
    set_current_client,
)
from beacon.observability.sink import InMemorySink, ReportingSink, StructlogSink
from beacon.observability.client import (
    TracingClient,
    capture_check_in,
    capture_exception,
    set_transaction_name,
    start_span,
)

__all__ = [
    # Types
    "CheckIn",
    "CheckInStatus",
    "MonitorConfig",
    "MonitorSchedule",
    "RouteTransition",
    "Span",
    "SpanStatus",
    # Semantic conventions
    "Origins",
    "SpanAttributes",
    "SpanOps",
    "TransactionSource",
    # Hooks and context
    "HookRegistry",
    "Scope",
    "get_client",
    "get_current_scope",
    "get_default_scope",
    "get_isolation_scope",
    "isolation_scope",
    "reset_context",
    "set_current_client",
    # Client and sinks
    "TracingClient",
    "InMemorySink",
    "ReportingSink",
    "StructlogSink",
    "capture_check_in",
    "capture_exception",
    "set_transaction_name",
    "start_span",
]
