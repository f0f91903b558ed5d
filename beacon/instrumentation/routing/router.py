"""
Routing library contract and an in-memory router.

Route instrumentation only needs two capabilities from a router, captured
by ``RouterHooks``. ``MemoryRouter`` implements them without a browser or
server: nested route definitions, ``:param`` segments and redirect routes
over a ``MemoryHistory``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

import structlog

from beacon.core.errors import BeaconError, RouterContextError
from beacon.observability.hooks import HookRegistry, Unsubscribe

logger = structlog.get_logger(__name__)

BEFORE_LEAVE = "before_leave"
MAX_REDIRECTS = 10


@dataclass(frozen=True)
class BeforeLeaveEvent:
    """Fired before a route change commits."""
    from_path: str
    to_path: str


class RouterHooks(Protocol):
    """Capabilities a routing library provides to instrumentation."""

    def subscribe_before_leave(self, callback: Callable[[BeforeLeaveEvent], Any]) -> Unsubscribe:
        ...

    def current_resolved_path(self) -> str:
        ...


@dataclass
class Route:
    """A route definition. Routes with children only group their children."""
    path: str
    children: List["Route"] = field(default_factory=list)
    redirect: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class RouteMatch:
    """A route matched against a concrete path."""
    pattern: str
    path: str
    params: Dict[str, str]
    route: Route


def _join(parent: str, child: str) -> str:
    joined = "/".join(s for s in (parent.strip("/"), child.strip("/")) if s)
    return "/" + joined


def _normalize(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0]
    return _join("", path)


def _flatten(routes: Iterable[Route], prefix: str = "") -> List[Tuple[str, Route]]:
    flat = []
    for route in routes:
        pattern = _join(prefix, route.path)
        if route.children:
            flat.extend(_flatten(route.children, pattern))
        else:
            flat.append((pattern, route))
    return flat


def match_path(pattern: str, path: str) -> Optional[Dict[str, str]]:
    """Match ``path`` against ``pattern``; returns bound params or None."""
    pattern_parts = [p for p in pattern.split("/") if p]
    path_parts = [p for p in path.split("/") if p]

    if len(pattern_parts) != len(path_parts):
        return None

    params = {}
    for expected, actual in zip(pattern_parts, path_parts):
        if expected.startswith(":"):
            params[expected[1:]] = actual
        elif expected != actual:
            return None
    return params


class MemoryHistory:
    """Navigation history kept in memory."""

    def __init__(self, initial: str = "/"):
        self._entries: List[str] = [_normalize(initial)]
        self._index = 0

    @property
    def location(self) -> str:
        return self._entries[self._index]

    def set(self, value: str) -> None:
        """Replace the current entry."""
        self._entries[self._index] = _normalize(value)

    def push(self, value: str) -> None:
        del self._entries[self._index + 1:]
        self._entries.append(_normalize(value))
        self._index += 1

    def back(self) -> Optional[str]:
        if self._index == 0:
            return None
        self._index -= 1
        return self.location

    def __len__(self) -> int:
        return len(self._entries)


class MemoryRouter:
    """
    In-memory router.

    ``root`` runs inside the router context when the router mounts, before
    the initial location's redirects are followed. It may return a cleanup
    callable that runs on ``unmount()``.
    """

    def __init__(
        self,
        routes: Iterable[Route] = (),
        history: Optional[MemoryHistory] = None,
        root: Optional[Callable[["MemoryRouter"], Optional[Callable[[], None]]]] = None,
    ):
        self.history = history or MemoryHistory()
        self._routes = _flatten(routes)
        self._root = root
        self._hooks = HookRegistry()
        self._cleanups: List[Callable[[], None]] = []
        self._mounted = False

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def _require_context(self, hook: str) -> None:
        if not self._mounted:
            raise RouterContextError(f"{hook} used outside of a mounted router")

    # === Lifecycle ===

    def mount(self) -> None:
        if self._mounted:
            return

        self._mounted = True
        if self._root is not None:
            cleanup = self._root(self)
            if cleanup is not None:
                self._cleanups.append(cleanup)

        self._follow_redirects()

    def unmount(self) -> None:
        if not self._mounted:
            return

        for cleanup in reversed(self._cleanups):
            cleanup()
        self._cleanups.clear()
        self._hooks.clear()
        self._mounted = False

    # === Hooks ===

    def subscribe_before_leave(self, callback: Callable[[BeforeLeaveEvent], Any]) -> Unsubscribe:
        self._require_context("subscribe_before_leave")
        return self._hooks.subscribe(BEFORE_LEAVE, callback)

    def current_resolved_path(self) -> str:
        self._require_context("current_resolved_path")
        return self.history.location

    # === Navigation ===

    def match(self, path: str) -> Optional[RouteMatch]:
        path = _normalize(path)
        for pattern, route in self._routes:
            params = match_path(pattern, path)
            if params is not None:
                return RouteMatch(pattern=pattern, path=path, params=params, route=route)
        return None

    @property
    def current_match(self) -> Optional[RouteMatch]:
        return self.match(self.history.location)

    def navigate(self, href: str) -> bool:
        """Navigate to ``href``. Returns False when already there."""
        self._require_context("navigate")
        return self._navigate(href)

    def _navigate(self, href: str, follow_redirects: bool = True) -> bool:
        to_path = _normalize(href)
        from_path = self.history.location
        if to_path == from_path:
            return False

        self._hooks.emit(BEFORE_LEAVE, BeforeLeaveEvent(from_path=from_path, to_path=to_path))
        self.history.push(to_path)
        logger.debug("Route committed", from_path=from_path, to_path=to_path)

        if follow_redirects:
            self._follow_redirects()
        return True

    def _follow_redirects(self) -> None:
        for _ in range(MAX_REDIRECTS):
            current = self.current_match
            if current is None or current.route.redirect is None:
                return
            if not self._navigate(current.route.redirect, follow_redirects=False):
                return
        raise BeaconError(f"Too many redirects from {self.history.location}")
