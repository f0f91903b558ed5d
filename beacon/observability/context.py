"""
Beacon Observability Context

Isolation scopes and the current tracing client.

The process starts with one default scope. Request and job boundaries fork
it into an isolation scope held in a context variable, so concurrent
requests on one event loop never share a transaction name.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Generator, Optional

import structlog

if TYPE_CHECKING:
    from beacon.observability.client import TracingClient

logger = structlog.get_logger(__name__)


@dataclass
class ScopeData:
    """Snapshot of the data held by a scope."""
    transaction_name: Optional[str] = None
    tags: Dict[str, Any] = field(default_factory=dict)


class Scope:
    """Contextual state associated with one logical request or session."""

    def __init__(self, client: Optional["TracingClient"] = None):
        self._client = client
        self._transaction_name: Optional[str] = None
        self._tags: Dict[str, Any] = {}

    @property
    def client(self) -> Optional["TracingClient"]:
        return self._client

    def set_client(self, client: Optional["TracingClient"]) -> None:
        self._client = client

    @property
    def transaction_name(self) -> Optional[str]:
        return self._transaction_name

    def set_transaction_name(self, name: Optional[str]) -> None:
        self._transaction_name = name

    def set_tag(self, key: str, value: Any) -> None:
        self._tags[key] = value

    def get_scope_data(self) -> ScopeData:
        return ScopeData(
            transaction_name=self._transaction_name,
            tags=dict(self._tags),
        )

    def fork(self) -> "Scope":
        """Create a child scope that starts as a copy of this one."""
        child = Scope(self._client)
        child._transaction_name = self._transaction_name
        child._tags = dict(self._tags)
        return child


# === Context State ===

_default_scope: Scope = Scope()
_current_client: Optional["TracingClient"] = None
_isolation_scope: ContextVar[Optional[Scope]] = ContextVar("isolation_scope", default=None)


def get_default_scope() -> Scope:
    """The process-wide scope used outside any isolation boundary."""
    return _default_scope


def get_isolation_scope() -> Scope:
    """The isolation scope of the running request/job, or the default scope."""
    scope = _isolation_scope.get()
    return scope if scope is not None else _default_scope


def get_current_scope() -> Scope:
    """Get the scope that receives transaction-name updates."""
    return get_isolation_scope()


@contextmanager
def isolation_scope() -> Generator[Scope, None, None]:
    """Fork the current scope for the duration of the block."""
    scope = get_isolation_scope().fork()
    token = _isolation_scope.set(scope)
    try:
        yield scope
    finally:
        _isolation_scope.reset(token)


def set_current_client(client: Optional["TracingClient"]) -> None:
    """Bind ``client`` as the process-wide tracing client."""
    global _current_client
    _current_client = client
    get_isolation_scope().set_client(client)
    if _isolation_scope.get() is not None:
        _default_scope.set_client(client)


def get_client() -> Optional["TracingClient"]:
    """Get the bound tracing client, if any."""
    scope_client = get_isolation_scope().client
    return scope_client if scope_client is not None else _current_client


def reset_context() -> None:
    """Drop the bound client and all scope state (process start / test teardown)."""
    global _default_scope, _current_client
    _default_scope = Scope()
    _current_client = None
    _isolation_scope.set(None)
    logger.debug("Context reset")
