"""
Beacon Instrumentation Module

Span enrichment, scheduled-job check-ins and route instrumentation.
"""

from beacon.instrumentation.enrichment import (
    add_framework_span_attributes,
    register_framework_enrichment,
)
from beacon.instrumentation.crons import CheckInMonitor, wrap_with_check_ins
from beacon.instrumentation.routing import (
    RouterTracingIntegration,
    with_router_instrumentation,
)

__all__ = [
    "add_framework_span_attributes",
    "register_framework_enrichment",
    "CheckInMonitor",
    "wrap_with_check_ins",
    "RouterTracingIntegration",
    "with_router_instrumentation",
]
