"""
Beacon Logging Engine

Configures structlog for the instrumentation engine:
- Standard library integration (levels, logger names)
- ISO timestamps and exception formatting
- Isolation-scope correlation (transaction name)
- JSON or console rendering
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict, Union

import structlog

from beacon.core.config import LogLevel
from beacon.observability.context import get_isolation_scope


def add_scope_context(
    logger: Any,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """Add the active transaction name to log events."""
    transaction_name = get_isolation_scope().transaction_name
    if transaction_name and "transaction_name" not in event_dict:
        event_dict["transaction_name"] = transaction_name
    return event_dict


def configure_logging(
    level: Union[LogLevel, str] = LogLevel.INFO,
    json_output: bool = False,
) -> None:
    """Configure structlog with Beacon processors."""
    level_name = level.value if isinstance(level, LogLevel) else str(level).upper()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_scope_context,
    ]

    if json_output:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
