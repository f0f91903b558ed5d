"""
Beacon Logging Module

Structured logging with scope correlation.
"""

from beacon.observability.logging.engine import (
    add_scope_context,
    configure_logging,
)

__all__ = [
    "add_scope_context",
    "configure_logging",
]
