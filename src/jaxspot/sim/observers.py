# JaxSpot Observer Registry
"""
Payload-less change notifications.

Subscribers are told *that* engine state changed, never *what* changed; they
re-fetch whatever they display.
"""

import threading
from typing import Callable, List

from jaxspot.core.logging_utils import get_logger

logger = get_logger(__name__)

Listener = Callable[[], None]


class ObserverRegistry:
    """Thread-safe list of no-argument callbacks."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners = [l for l in self._listeners if l != listener]

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self) -> None:
        """Call every listener; a failing listener does not stop the rest."""
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Observer {getattr(listener, '__name__', listener)!s} failed: {e}")
