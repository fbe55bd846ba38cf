"""
JaxSpot - Central Configuration

This module contains all system-wide constants, thresholds, and settings.
It serves as the single source of truth for configuration.
Trading behaviour itself is driven by the persisted Policy record; the values
here are process settings and the fixed constants of the simulator.
"""

from typing import Dict, List
import os
from datetime import datetime, timezone

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return float(default)
    try:
        return float(raw)
    except ValueError:
        return float(default)


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


# --- Environment Settings ---
ENVIRONMENT = os.getenv('ENVIRONMENT', 'production')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Directory holding positions.json / policy.json / confidence.json.
# Empty means <project_root>/data.
DATA_DIR = os.getenv('JAXSPOT_DATA_DIR', '')

# --- Evaluation Loop ---
TICK_INTERVAL_SEC: float = _env_float('JAXSPOT_TICK_INTERVAL_SEC', 5.0)

# --- Price Feed ---
PRICE_SOURCE: str = os.getenv('JAXSPOT_PRICE_SOURCE', 'coingecko').strip().lower()
FEED_TIMEOUT_SEC: float = _env_float('JAXSPOT_FEED_TIMEOUT_SEC', 10.0)
FEED_CACHE_SEC: float = _env_float('JAXSPOT_FEED_CACHE_SEC', 10.0)
COINGECKO_BASE_URL: str = os.getenv('JAXSPOT_COINGECKO_URL', 'https://api.coingecko.com/api/v3')
COINGECKO_PAGE_SIZE: int = _env_int('JAXSPOT_COINGECKO_PAGE_SIZE', 50)

DEFAULT_BINANCE_SYMBOLS: List[str] = [
    "BTC/USDT",
    "ETH/USDT",
    "BNB/USDT",
    "SOL/USDT",
    "XRP/USDT",
    "ADA/USDT",
    "DOGE/USDT",
    "AVAX/USDT",
    "DOT/USDT",
    "POL/USDT",
    "LINK/USDT",
    "ATOM/USDT",
    "LTC/USDT",
    "UNI/USDT",
    "NEAR/USDT",
    "APT/USDT",
    "ARB/USDT",
    "OP/USDT",
    "INJ/USDT",
    "SUI/USDT",
]

# --- Webhook Notifications ---
WEBHOOK_TIMEOUT_SEC: float = max(1.0, min(30.0, _env_float('JAXSPOT_WEBHOOK_TIMEOUT_SEC', 6.0)))
WEBHOOK_QUEUE_MAX: int = max(10, min(5000, _env_int('JAXSPOT_WEBHOOK_QUEUE_MAX', 200)))
WEBHOOK_DRAIN_TIMEOUT_SEC: float = 2.0

# --- Wallet ---
STARTING_BALANCE_USD: float = _env_float('JAXSPOT_STARTING_BALANCE_USD', 100000.0)
HOLDS_LOOKBACK_DAYS: int = 7


def utc_now() -> datetime:
    """Returns the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# --- Default State ---
DEFAULT_CONFIDENCE: float = 75.0
CONFIDENCE_MIN: float = 50.0
CONFIDENCE_MAX: float = 95.0
CONFIDENCE_NEUTRAL: float = 75.0
DEFAULT_CONFIDENCE_THRESHOLD_PCT: float = 65.0

# --- Position Sizing ---
BASE_TRADE_SIZE_USD: float = 1000.0

STYLE_SIZE_MULTIPLIER: Dict[str, float] = {
    "Scalping": 0.5,
    "DayTrading": 1.0,
    "SwingTrading": 1.5,
}

RISK_SIZE_MULTIPLIER: Dict[str, float] = {
    "Conservative": 0.75,
    "Moderate": 1.0,
    "Aggressive": 1.5,
}

# --- Exit Targets ---
# (take profit %, stop loss %) before style and confidence scaling
RISK_TARGET_PCT: Dict[str, tuple] = {
    "Conservative": (3.0, -1.5),
    "Moderate": (5.0, -2.5),
    "Aggressive": (10.0, -5.0),
}

STYLE_TARGET_MULTIPLIER: Dict[str, float] = {
    "Scalping": 0.5,
    "DayTrading": 1.0,
    "SwingTrading": 2.0,
}

# 50 -> 0.5x, 75 -> 1.0x, 95 -> 1.4x
CONFIDENCE_TARGET_SPAN: float = 50.0

# --- Holding Durations (minutes) ---
MAX_TRADE_DURATION_MIN: Dict[str, float] = {
    "Scalping": 60.0,
    "DayTrading": 24 * 60.0,
    "SwingTrading": 72 * 60.0,
}

QUICK_TRADE_THRESHOLD_MIN: Dict[str, float] = {
    "Scalping": 15.0,
    "DayTrading": 2 * 60.0,
    "SwingTrading": 12 * 60.0,
}

# --- Confidence Adjustment ---
TIME_LIMIT_CONFIDENCE_DELTA: float = -0.2
GAIN_WEIGHT: float = 0.2
LOSS_WEIGHT: float = 0.4
TAKE_PROFIT_AMPLIFIER: float = 1.75
STOP_LOSS_AMPLIFIER: float = 2.5
QUICK_TAKE_PROFIT_BONUS: float = 0.35
QUICK_STOP_LOSS_PENALTY: float = 0.6

# --- Admission Funnel ---
MOMENTUM_MIN_CHANGE_PCT: float = 2.0
LIQUIDITY_MIN_MARKET_CAP_USD: float = 100_000_000.0
MISSING_MARKET_CAP_USD: float = 100_000_000.0
RISK_MAX_CHANGE_PCT: float = 25.0

MOMENTUM_WEIGHT: float = 0.7
MARKET_CAP_WEIGHT: float = 0.3
MARKET_CAP_LOG_FLOOR: float = 8.0     # log10($100M)
MARKET_CAP_LOG_SPAN: float = 4.7      # up to log10(~$5T)
