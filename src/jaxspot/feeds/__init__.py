# JaxSpot Feeds Module
"""
Price feed implementations.
"""

from jaxspot.core import config

from .coingecko_feed import CoinGeckoPriceFeed
from .binance_feed import BinancePriceFeed
from .replay_feed import ReplayPriceFeed


def build_price_feed(source: str = config.PRICE_SOURCE):
    """Create the live feed named by JAXSPOT_PRICE_SOURCE."""
    source = (source or "").strip().lower()
    if source == "binance":
        return BinancePriceFeed()
    if source == "coingecko":
        return CoinGeckoPriceFeed()
    raise ValueError(f"Unknown price source: {source!r}")


__all__ = [
    "CoinGeckoPriceFeed",
    "BinancePriceFeed",
    "ReplayPriceFeed",
    "build_price_feed",
]
