# JaxSpot Sim Interfaces
"""
Protocols for the collaborators the engine is built from.
"""

from typing import Protocol

from jaxspot.core.models import Quote, Policy, Position


class IPriceFeed(Protocol):
    """
    Protocol for price snapshot providers.

    Implementations:
    - Live: CoinGecko markets endpoint or exchange tickers
    - Replay: scripted snapshots for tests and dry runs
    """

    def snapshot(self) -> list[Quote]:
        """
        Get the current price/quote snapshot.

        Returns:
            List of Quote objects, one per asset.

        Raises:
            PriceFeedError: if the snapshot could not be obtained.
        """
        ...


class IStateStore(Protocol):
    """
    Protocol for persisting the simulator records.

    Load methods never raise; they fall back to defaults.
    """

    def load_positions(self) -> list[Position]:
        ...

    def load_policy(self) -> Policy:
        ...

    def load_confidence(self) -> float:
        ...

    def save_positions(self, positions: list[Position]) -> None:
        ...

    def save_policy(self, policy: Policy) -> None:
        ...

    def save_confidence(self, confidence: float) -> None:
        ...


class INotifier(Protocol):
    """
    Protocol for best-effort trade event delivery.
    """

    def dispatch_event(self, kind: str, position: Position, policy: Policy) -> None:
        ...

    def dispatch_test(self, policy: Policy) -> None:
        ...
