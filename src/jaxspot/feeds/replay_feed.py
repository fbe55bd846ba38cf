# JaxSpot Replay Price Feed
"""
Replay feed that serves scripted snapshots, one per call.
"""

from typing import Union

from jaxspot.core.errors import PriceFeedError
from jaxspot.core.models import Quote

ReplayItem = Union[list[Quote], Exception]


class ReplayPriceFeed:
    """
    Serves a fixed sequence of snapshots.

    An Exception in the sequence is raised when its turn comes, which lets
    tests script transient feed failures. Once the sequence is exhausted the
    feed raises PriceFeedError.
    """

    def __init__(self, snapshots: list[ReplayItem]) -> None:
        self._snapshots = list(snapshots)
        self._index = 0

    @classmethod
    def constant(cls, quotes: list[Quote], repeat: int) -> "ReplayPriceFeed":
        return cls([list(quotes) for _ in range(repeat)])

    @property
    def remaining(self) -> int:
        return len(self._snapshots) - self._index

    def snapshot(self) -> list[Quote]:
        if self._index >= len(self._snapshots):
            raise PriceFeedError("Replay exhausted")
        item = self._snapshots[self._index]
        self._index += 1
        if isinstance(item, Exception):
            raise item
        return list(item)
