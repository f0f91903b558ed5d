"""
Beacon Semantic Conventions.

Standardized span attribute keys and the origin strings identifying
which instrumentation produced a span.
"""


class SpanAttributes:
    """Standard span attribute names."""

    # How the span name was derived (url, route, custom)
    SOURCE = "beacon.source"
    # What kind of work the span represents
    OP = "beacon.op"
    # What automatically produced the span
    ORIGIN = "beacon.origin"

    HTTP_METHOD = "http.method"
    HTTP_ROUTE = "http.route"
    HTTP_TARGET = "http.target"
    HTTP_STATUS_CODE = "http.status_code"


class TransactionSource:
    """Values for SpanAttributes.SOURCE."""
    URL = "url"
    ROUTE = "route"
    CUSTOM = "custom"


class SpanOps:
    """Values for SpanAttributes.OP."""
    PAGELOAD = "pageload"
    NAVIGATION = "navigation"


class Origins:
    """Values for SpanAttributes.ORIGIN."""
    MANUAL = "manual"
    PAGELOAD = "auto.pageload.browser"
    NAVIGATION = "auto.navigation.beacon.router"

    @staticmethod
    def framework(framework: str) -> str:
        """Origin for spans enriched from a framework's own span kind."""
        return f"auto.http.otel.{framework}"


def framework_kind_key(framework: str) -> str:
    """Attribute a framework uses for its local span kind, e.g. ``fastapi.type``."""
    return f"{framework}.type"
