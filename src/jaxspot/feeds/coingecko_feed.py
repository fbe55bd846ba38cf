"""
CoinGecko Price Feed for JaxSpot.
Pulls the top coins by market cap from the public /coins/markets endpoint.
"""

import math
import time
from typing import List, Optional

import requests

from jaxspot.core import config
from jaxspot.core.errors import PriceFeedError
from jaxspot.core.logging_utils import get_logger
from jaxspot.core.models import Quote

logger = get_logger(__name__)


def _as_float(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def parse_markets(rows: list) -> List[Quote]:
    """
    Convert /coins/markets rows to quotes.
    Rows without a usable price are skipped; a missing 24h change reads as 0.
    """
    quotes = []
    for row in rows:
        if not isinstance(row, dict) or not row.get("id"):
            continue
        price = _as_float(row.get("current_price"))
        if price is None or price <= 0:
            continue
        change = _as_float(row.get("price_change_percentage_24h"))
        market_cap = _as_float(row.get("market_cap"))
        quotes.append(Quote(
            id=str(row["id"]),
            symbol=str(row.get("symbol", row["id"])).upper(),
            name=str(row.get("name", "")),
            price=price,
            change_24h_pct=change if change is not None else 0.0,
            market_cap_usd=market_cap if market_cap and market_cap > 0 else None,
        ))
    return quotes


class CoinGeckoPriceFeed:
    def __init__(
        self,
        base_url: str = config.COINGECKO_BASE_URL,
        per_page: int = config.COINGECKO_PAGE_SIZE,
        timeout_sec: float = config.FEED_TIMEOUT_SEC,
        cache_sec: float = config.FEED_CACHE_SEC,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.per_page = int(per_page)
        self.timeout_sec = float(timeout_sec)
        self.cache_sec = float(cache_sec)
        self._session = session or requests.Session()
        self._cache: Optional[List[Quote]] = None
        self._cache_at = 0.0

    def snapshot(self) -> List[Quote]:
        """
        Returns the current quotes, served from a short cache to avoid
        hammering the public API when several callers tick close together.
        """
        if self._cache is not None and (time.monotonic() - self._cache_at) < self.cache_sec:
            return list(self._cache)

        url = f"{self.base_url}/coins/markets"
        params = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": self.per_page,
            "page": 1,
            "sparkline": "false",
        }
        try:
            response = self._session.get(url, params=params, timeout=self.timeout_sec)
            response.raise_for_status()
            rows = response.json()
        except requests.RequestException as e:
            raise PriceFeedError(f"CoinGecko request failed: {e}") from e
        except ValueError as e:
            raise PriceFeedError(f"CoinGecko returned invalid JSON: {e}") from e

        if not isinstance(rows, list):
            raise PriceFeedError(f"Unexpected CoinGecko payload: {type(rows).__name__}")

        quotes = parse_markets(rows)
        logger.debug(f"Fetched {len(quotes)} quotes from CoinGecko")
        self._cache = quotes
        self._cache_at = time.monotonic()
        return list(quotes)
