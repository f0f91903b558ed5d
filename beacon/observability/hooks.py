"""
Beacon lifecycle hooks.

Explicit subscription objects: ``subscribe(event, callback)`` returns a
callable that removes the subscription again.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List

Unsubscribe = Callable[[], None]


class HookRegistry:
    """Named event hooks with ordered subscribers."""

    def __init__(self):
        self._subscribers: Dict[str, List[Callable[..., Any]]] = defaultdict(list)

    def subscribe(self, event: str, callback: Callable[..., Any]) -> Unsubscribe:
        """Register ``callback`` for ``event``."""
        self._subscribers[event].append(callback)

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(event)
            if subscribers and callback in subscribers:
                subscribers.remove(callback)

        return unsubscribe

    def emit(self, event: str, *args: Any) -> None:
        """
        Call every subscriber of ``event`` in registration order.

        Iterates over a snapshot, so a callback may subscribe, unsubscribe
        or trigger a nested emit without affecting the current dispatch.
        """
        for callback in list(self._subscribers.get(event, ())):
            callback(*args)

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, ()))

    def clear(self) -> None:
        self._subscribers.clear()
