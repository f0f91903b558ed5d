"""
Beacon - framework instrumentation for tracing, job check-ins and
exception reporting.

Usage:
    import beacon

    client = beacon.init(sink=beacon.StructlogSink())

    # Scheduled jobs
    handler = beacon.wrap_with_check_ins(handler, jobs=[
        {"path": "/cron/sync", "schedule": "0 * * * *"},
    ])

    # Routing
    client.add_integration(beacon.RouterTracingIntegration())
    Router = beacon.with_router_instrumentation(MemoryRouter)

FastAPI applications use ``beacon.integrations.fastapi`` instead of
``beacon.init``.
"""

from __future__ import annotations

from beacon.core import (
    BeaconConfig,
    BeaconError,
    CronJob,
    ExpectedError,
    RouterContextError,
    get_config,
    set_config,
)
from beacon.observability import (
    CheckIn,
    CheckInStatus,
    InMemorySink,
    ReportingSink,
    Scope,
    Span,
    SpanAttributes,
    StructlogSink,
    TracingClient,
    capture_check_in,
    capture_exception,
    get_client,
    get_current_scope,
    get_isolation_scope,
    isolation_scope,
    reset_context,
    set_current_client,
    set_transaction_name,
    start_span,
)
from beacon.instrumentation import (
    CheckInMonitor,
    RouterTracingIntegration,
    add_framework_span_attributes,
    register_framework_enrichment,
    with_router_instrumentation,
    wrap_with_check_ins,
)
from beacon.sdk import __version__, init

__all__ = [
    "__version__",
    "init",
    # Config and errors
    "BeaconConfig",
    "BeaconError",
    "CronJob",
    "ExpectedError",
    "RouterContextError",
    "get_config",
    "set_config",
    # Observability
    "CheckIn",
    "CheckInStatus",
    "InMemorySink",
    "ReportingSink",
    "Scope",
    "Span",
    "SpanAttributes",
    "StructlogSink",
    "TracingClient",
    "capture_check_in",
    "capture_exception",
    "get_client",
    "get_current_scope",
    "get_isolation_scope",
    "isolation_scope",
    "reset_context",
    "set_current_client",
    "set_transaction_name",
    "start_span",
    # Instrumentation
    "CheckInMonitor",
    "RouterTracingIntegration",
    "add_framework_span_attributes",
    "register_framework_enrichment",
    "with_router_instrumentation",
    "wrap_with_check_ins",
]
