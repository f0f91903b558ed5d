"""
Beacon Observability Types

Dataclasses for spans, scheduled-job check-ins, and route transitions.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from beacon.observability.semantic import SpanAttributes


# === Tracing ===

class SpanStatus(str, Enum):
    """Status of a span."""
    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


@dataclass
class Span:
    """A timed, tagged record of one unit of traced work."""
    trace_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    span_id: str = field(default_factory=lambda: uuid.uuid4().hex[:16])
    parent_span_id: Optional[str] = None

    description: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)

    # Monotonic clock readings
    start_timestamp: float = field(default_factory=time.monotonic)
    end_timestamp: Optional[float] = None

    status: SpanStatus = SpanStatus.UNSET

    @property
    def op(self) -> Optional[str]:
        """The normalized operation tag, if set."""
        return self.attributes.get(SpanAttributes.OP)

    @property
    def origin(self) -> Optional[str]:
        return self.attributes.get(SpanAttributes.ORIGIN)

    @property
    def is_recording(self) -> bool:
        """A span records attribute writes until it is closed."""
        return self.end_timestamp is None

    @property
    def duration(self) -> Optional[float]:
        """Span duration in seconds, or None while open."""
        if self.end_timestamp is None:
            return None
        return self.end_timestamp - self.start_timestamp

    def set_attribute(self, key: str, value: Any) -> None:
        """Set a span attribute. Closed spans are left untouched."""
        if not self.is_recording:
            return
        self.attributes[key] = value

    def set_attributes(self, attributes: Dict[str, Any]) -> None:
        for key, value in attributes.items():
            self.set_attribute(key, value)

    def set_status(self, status: SpanStatus) -> None:
        if self.is_recording:
            self.status = status

    def end(self, end_timestamp: Optional[float] = None) -> None:
        """End the span. Ending twice keeps the first timestamp."""
        if self.end_timestamp is None:
            self.end_timestamp = end_timestamp or time.monotonic()

    def to_dict(self) -> dict:
        return {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "op": self.op,
            "origin": self.origin,
            "description": self.description,
            "start_timestamp": self.start_timestamp,
            "end_timestamp": self.end_timestamp,
            "status": self.status.value,
            "data": dict(self.attributes),
        }


# === Crons ===

class CheckInStatus(str, Enum):
    """Execution state of a scheduled job."""
    IN_PROGRESS = "in_progress"
    OK = "ok"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not CheckInStatus.IN_PROGRESS


@dataclass
class MonitorSchedule:
    """Schedule attached to a monitor."""
    value: str
    type: str = "crontab"

    def to_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


@dataclass
class MonitorConfig:
    """
    Monitor bounds sent with the first check-in of an execution.

    The receiving system uses them to flag late starts and overlong runs;
    nothing is enforced locally.
    """
    schedule: MonitorSchedule
    checkin_margin: int = 2      # minutes
    max_runtime: int = 60 * 12   # minutes

    def to_dict(self) -> dict:
        return {
            "schedule": self.schedule.to_dict(),
            "checkin_margin": self.checkin_margin,
            "max_runtime": self.max_runtime,
        }


@dataclass
class CheckIn:
    """One reported state of a scheduled job execution."""
    monitor_slug: str
    status: CheckInStatus
    check_in_id: Optional[str] = None
    duration: Optional[float] = None
    monitor_config: Optional[MonitorConfig] = None

    def to_dict(self) -> dict:
        data: Dict[str, Any] = {
            "monitor_slug": self.monitor_slug,
            "status": self.status.value,
        }
        if self.check_in_id is not None:
            data["check_in_id"] = self.check_in_id
        if self.duration is not None:
            data["duration"] = self.duration
        if self.monitor_config is not None:
            data["monitor_config"] = self.monitor_config.to_dict()
        return data


# === Routing ===

@dataclass(frozen=True)
class RouteTransition:
    """An observed navigation: the resolved destination path."""
    to_path: str
    is_initial_load: bool = False
