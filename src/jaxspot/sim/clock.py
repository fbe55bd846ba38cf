# JaxSpot Sim Clock
"""
Clock protocol and implementations for simulator time.
"""

from datetime import datetime, timedelta
from typing import Protocol

from jaxspot.core.config import utc_now


class IClock(Protocol):
    """
    Protocol for time management.

    Implementations provide current time from various sources:
    - Live: System clock
    - Manual: Simulated time advanced explicitly (tests, replays)
    """

    def now(self) -> datetime:
        """
        Get the current time.

        Returns:
            Current aware datetime (real or simulated).
        """
        ...


class SystemClock:
    """Wall-clock UTC time."""

    def now(self) -> datetime:
        return utc_now()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self._now = start

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        """Move forward by timedelta(**kwargs) and return the new time."""
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, when: datetime) -> None:
        self._now = when
