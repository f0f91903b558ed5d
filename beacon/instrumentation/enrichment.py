"""
Framework span enrichment.

Frameworks instrumented through OpenTelemetry tag their spans with a local
kind attribute (``<framework>.type``: app_creation, request_context,
handler, ...). This maps that kind onto the normalized op/origin tags.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from beacon.observability.hooks import Unsubscribe
from beacon.observability.semantic import Origins, SpanAttributes, framework_kind_key
from beacon.observability.types import Span

if TYPE_CHECKING:
    from beacon.observability.client import TracingClient


def add_framework_span_attributes(span: Span, framework: str) -> None:
    """Tag ``span`` with op ``<kind>.<framework>`` and the framework origin.

    No-op when the span already has an op, or carries no framework kind.
    """
    attributes = span.attributes
    kind = attributes.get(framework_kind_key(framework))

    if attributes.get(SpanAttributes.OP) or not kind:
        return

    span.set_attributes({
        SpanAttributes.ORIGIN: Origins.framework(framework),
        SpanAttributes.OP: f"{kind}.{framework}",
    })


def register_framework_enrichment(client: "TracingClient", framework: str) -> Unsubscribe:
    """Run enrichment on every span the client starts."""
    return client.on_span_start(lambda span: add_framework_span_attributes(span, framework))
