from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from urllib.parse import urlparse

from jaxspot.core import config
from jaxspot.core.errors import PolicyValidationError


class RiskTolerance(Enum):
    CONSERVATIVE = "Conservative"
    MODERATE = "Moderate"
    AGGRESSIVE = "Aggressive"


class InvestmentStyle(Enum):
    SCALPING = "Scalping"
    DAY_TRADING = "DayTrading"
    SWING_TRADING = "SwingTrading"


class Direction(Enum):
    BUY = "Buy"
    SELL = "Sell"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.BUY else -1


class PositionStatus(Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class CloseReason(Enum):
    TAKE_PROFIT = "TakeProfit"
    STOP_LOSS = "StopLoss"
    TIME_LIMIT = "TimeLimit"


def parse_enum(enum_cls, raw):
    """
    Resolve an enum member from a member, its value or its name.
    Spaces and case are ignored, so "Day Trading" and "day_trading" both map
    to InvestmentStyle.DAY_TRADING.
    Raises ValueError for anything else.
    """
    if isinstance(raw, enum_cls):
        return raw
    key = str(raw).replace(" ", "").replace("_", "").lower()
    for member in enum_cls:
        if key in (member.value.lower(), member.name.replace("_", "").lower()):
            return member
    raise ValueError(f"{raw!r} is not a valid {enum_cls.__name__}")


@dataclass(frozen=True)
class Quote:
    """
    A single asset price observation, supplied per tick by a price feed.
    """
    id: str
    symbol: str
    price: float
    change_24h_pct: float
    market_cap_usd: Optional[float] = None
    name: str = ""


@dataclass
class Policy:
    """
    User-controlled risk/style configuration. Read on every tick.
    """
    risk_tolerance: RiskTolerance = RiskTolerance.MODERATE
    investment_style: InvestmentStyle = InvestmentStyle.DAY_TRADING
    confidence_threshold_pct: float = config.DEFAULT_CONFIDENCE_THRESHOLD_PCT
    webhook_url: Optional[str] = None
    webhook_enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_tolerance": self.risk_tolerance.value,
            "investment_style": self.investment_style.value,
            "confidence_threshold_pct": self.confidence_threshold_pct,
            "webhook_url": self.webhook_url,
            "webhook_enabled": self.webhook_enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Policy":
        """Builds a Policy from a stored record; unknown keys are ignored."""
        return apply_policy_update(cls(), data)


def parse_utc_timestamp(raw: str) -> datetime:
    """ISO-8601 string to an aware datetime. Naive values are taken as UTC."""
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def is_valid_webhook_url(url: Optional[str]) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def apply_policy_update(policy: Policy, partial: Dict[str, Any]) -> Policy:
    """
    Returns a new Policy with the fields of `partial` applied.

    Every field is validated before anything is applied, so a rejected edit
    leaves `policy` untouched.

    Raises:
        PolicyValidationError: on unknown enum values, an out-of-range
            threshold, or a malformed webhook URL.
    """
    changes: Dict[str, Any] = {}

    for key, raw in partial.items():
        if key == "risk_tolerance":
            try:
                changes[key] = parse_enum(RiskTolerance, raw)
            except ValueError as e:
                raise PolicyValidationError(str(e)) from e
        elif key == "investment_style":
            try:
                changes[key] = parse_enum(InvestmentStyle, raw)
            except ValueError as e:
                raise PolicyValidationError(str(e)) from e
        elif key == "confidence_threshold_pct":
            try:
                value = float(raw)
            except (TypeError, ValueError) as e:
                raise PolicyValidationError(f"confidence_threshold_pct must be a number, got {raw!r}") from e
            if not 0.0 <= value <= 100.0:
                raise PolicyValidationError(f"confidence_threshold_pct must be within [0, 100], got {value}")
            changes[key] = value
        elif key == "webhook_url":
            url = str(raw).strip() if raw is not None else ""
            if url and not is_valid_webhook_url(url):
                raise PolicyValidationError(f"Invalid webhook URL: {url!r}")
            changes[key] = url or None
        elif key == "webhook_enabled":
            if isinstance(raw, str):
                changes[key] = raw.strip().lower() in {"1", "true", "yes", "on"}
            else:
                changes[key] = bool(raw)
        # other keys are not part of the policy record

    return replace(policy, **changes)


@dataclass
class Position:
    """
    A simulated position. Mutated in place while Open, frozen once Closed.
    """
    id: str
    asset_id: str
    symbol: str
    direction: Direction
    entry_price: float
    notional_usd: float
    opened_at: datetime
    take_profit_price: float
    stop_loss_price: float
    status: PositionStatus = PositionStatus.OPEN
    floating_pnl: float = 0.0
    closed_at: Optional[datetime] = None
    close_price: Optional[float] = None
    close_reason: Optional[CloseReason] = None
    realized_pnl: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_open(self) -> bool:
        return self.status is PositionStatus.OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "symbol": self.symbol,
            "direction": self.direction.value,
            "entry_price": self.entry_price,
            "notional_usd": self.notional_usd,
            "opened_at": self.opened_at.isoformat(),
            "take_profit_price": self.take_profit_price,
            "stop_loss_price": self.stop_loss_price,
            "status": self.status.value,
            "floating_pnl": self.floating_pnl,
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
            "close_price": self.close_price,
            "close_reason": self.close_reason.value if self.close_reason else None,
            "realized_pnl": self.realized_pnl,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        """Raises KeyError/ValueError/TypeError on a malformed record."""
        status = parse_enum(PositionStatus, data["status"])
        close_reason = data.get("close_reason")
        closed_at = data.get("closed_at")
        position = cls(
            id=str(data["id"]),
            asset_id=str(data["asset_id"]),
            symbol=str(data.get("symbol", data["asset_id"])),
            direction=parse_enum(Direction, data["direction"]),
            entry_price=float(data["entry_price"]),
            notional_usd=float(data["notional_usd"]),
            opened_at=parse_utc_timestamp(data["opened_at"]),
            take_profit_price=float(data["take_profit_price"]),
            stop_loss_price=float(data["stop_loss_price"]),
            status=status,
            floating_pnl=float(data.get("floating_pnl") or 0.0),
            closed_at=parse_utc_timestamp(closed_at) if closed_at else None,
            close_price=float(data["close_price"]) if data.get("close_price") is not None else None,
            close_reason=parse_enum(CloseReason, close_reason) if close_reason else None,
            realized_pnl=float(data["realized_pnl"]) if data.get("realized_pnl") is not None else None,
            metadata=dict(data.get("metadata") or {}),
        )
        # close_reason is set iff the position is closed
        if (position.status is PositionStatus.CLOSED) != (position.close_reason is not None):
            raise ValueError(f"Inconsistent close state for position {position.id}")
        return position
