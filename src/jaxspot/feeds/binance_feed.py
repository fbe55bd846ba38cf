"""
Binance Price Feed for JaxSpot.
Wraps ccxt spot tickers. Binance publishes no market cap, so every quote from
this feed carries market_cap_usd=None and stops at the liquidity screen.
"""

import math

import ccxt
from typing import List, Optional

from jaxspot.core import config
from jaxspot.core.errors import PriceFeedError
from jaxspot.core.logging_utils import get_logger
from jaxspot.core.models import Quote

logger = get_logger(__name__)


class BinancePriceFeed:
    def __init__(
        self,
        symbols: Optional[List[str]] = None,
        timeout_sec: float = config.FEED_TIMEOUT_SEC,
        exchange=None,
    ):
        self.symbols = list(symbols or config.DEFAULT_BINANCE_SYMBOLS)
        self.exchange = exchange or ccxt.binance({
            "enableRateLimit": True,
            "timeout": int(timeout_sec * 1000),
            "options": {
                "defaultType": "spot"
            }
        })

    def snapshot(self) -> List[Quote]:
        try:
            tickers = self.exchange.fetch_tickers(self.symbols)
        except ccxt.BaseError as e:
            raise PriceFeedError(f"Binance tickers failed: {e}") from e

        quotes = []
        for symbol in self.symbols:
            ticker = tickers.get(symbol)
            if not ticker:
                continue
            if ticker.get("last") is None:
                continue
            try:
                last = float(ticker.get("last"))
                change = float(ticker.get("percentage") or 0.0)
            except (TypeError, ValueError):
                logger.warning(f"Skipping malformed ticker for {symbol}: {ticker!r}")
                continue
            if not math.isfinite(last) or last <= 0:
                continue
            base = symbol.split("/")[0]
            quotes.append(Quote(
                id=base.lower(),
                symbol=base,
                name=symbol,
                price=last,
                change_24h_pct=change if math.isfinite(change) else 0.0,
                market_cap_usd=None,
            ))
        return quotes
