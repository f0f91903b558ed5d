"""
Beacon Reporting Sinks

The sink is where check-ins, exceptions and finished spans end up.
Delivery (network, retry, batching) is the sink's business; the
instrumentation engine only hands records over.
"""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from typing import List

import structlog

from beacon.observability.types import CheckIn, Span


class ReportingSink(ABC):
    """Contract for telemetry receivers."""

    @abstractmethod
    def capture_check_in(self, check_in: CheckIn) -> str:
        """Record a check-in and return its id."""
        pass

    @abstractmethod
    def capture_exception(self, exception: BaseException) -> str:
        """Record an exception and return an event id."""
        pass

    def capture_span(self, span: Span) -> None:
        """Record a finished span. Optional for sinks that ignore spans."""
        pass


def _check_in_id(check_in: CheckIn) -> str:
    # Terminal check-ins reuse the id of the in_progress one
    return check_in.check_in_id or uuid.uuid4().hex


class InMemorySink(ReportingSink):
    """Keeps every record in memory. Useful for tests and local debugging."""

    def __init__(self):
        self.check_ins: List[CheckIn] = []
        self.exceptions: List[BaseException] = []
        self.spans: List[Span] = []
        self._lock = threading.Lock()

    def capture_check_in(self, check_in: CheckIn) -> str:
        check_in_id = _check_in_id(check_in)
        with self._lock:
            check_in.check_in_id = check_in_id
            self.check_ins.append(check_in)
        return check_in_id

    def capture_exception(self, exception: BaseException) -> str:
        with self._lock:
            self.exceptions.append(exception)
        return uuid.uuid4().hex

    def capture_span(self, span: Span) -> None:
        with self._lock:
            self.spans.append(span)

    def clear(self) -> None:
        with self._lock:
            self.check_ins.clear()
            self.exceptions.clear()
            self.spans.clear()


class StructlogSink(ReportingSink):
    """Emits each record as a structured log event."""

    def __init__(self, logger_name: str = "beacon.sink"):
        self._logger = structlog.get_logger(logger_name)

    def capture_check_in(self, check_in: CheckIn) -> str:
        check_in_id = _check_in_id(check_in)
        self._logger.info(
            "check_in",
            **{**check_in.to_dict(), "check_in_id": check_in_id},
        )
        return check_in_id

    def capture_exception(self, exception: BaseException) -> str:
        event_id = uuid.uuid4().hex
        self._logger.error(
            "exception",
            event_id=event_id,
            error_type=type(exception).__name__,
            error=str(exception),
            exc_info=exception,
        )
        return event_id

    def capture_span(self, span: Span) -> None:
        self._logger.info("span", **span.to_dict())
