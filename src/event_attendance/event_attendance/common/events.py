"""In-process publish/subscribe channel for change notifications."""

from __future__ import annotations

import logging
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
Subscriber = Callable[[T], None]


class ChangeChannel(Generic[T]):
    """Synchronous callback registry.

    Subscribers are called in subscription order, once per publish, on the
    publishing thread. A subscriber that raises is logged and skipped; later
    subscribers still receive the payload.
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, payload: T) -> None:
        for callback in list(self._subscribers):
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber %r on channel %s failed", callback, self.name)

    def __len__(self) -> int:
        return len(self._subscribers)
