"""
Beacon Route Instrumentation

Pageload/navigation spans driven by a router's lifecycle callbacks.
"""

from beacon.instrumentation.routing.router import (
    BeforeLeaveEvent,
    MemoryHistory,
    MemoryRouter,
    Route,
    RouteMatch,
    RouterHooks,
    match_path,
)
from beacon.instrumentation.routing.integration import (
    RouteTracker,
    RouterTracingIntegration,
    with_router_instrumentation,
)

__all__ = [
    "BeforeLeaveEvent",
    "MemoryHistory",
    "MemoryRouter",
    "Route",
    "RouteMatch",
    "RouterHooks",
    "match_path",
    "RouteTracker",
    "RouterTracingIntegration",
    "with_router_instrumentation",
]
