"""
Position Lifecycle Manager
==========================

Owns the position set: opens simulated positions, marks them to market on
every tick and closes them on take-profit, stop-loss or time limit.

Exit thresholds are recomputed from the current policy and confidence on
every tick while a position is open. The thresholds in force at the moment of
closing are frozen onto the position together with the realized pnl.

Ordering on close: positions are persisted, then confidence is updated and
persisted, then the close event is queued for the webhook. A failed or
cancelled notification can therefore never lose trade state.

All methods must be called with the engine lock held.
"""

import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from jaxspot.core import config
from jaxspot.core.logging_utils import get_logger
from jaxspot.core.models import (
    Quote, Policy, Position, Direction, PositionStatus, CloseReason,
)
from jaxspot.sim.confidence import ConfidenceController
from jaxspot.sim.interfaces import IStateStore, INotifier
from jaxspot.sim.notifier import EVENT_TRADE_OPEN, EVENT_TRADE_CLOSE
from jaxspot.sim.sizing import size_usd
from jaxspot.sim.targets import calculate_targets

logger = get_logger(__name__)


def floating_pnl(position: Position, price: float) -> float:
    """Mark-to-market pnl in USD at `price`."""
    units = position.notional_usd / position.entry_price
    return (price - position.entry_price) * units * position.direction.sign


def elapsed_minutes(position: Position, now: datetime) -> float:
    return (now - position.opened_at).total_seconds() / 60.0


def evaluate_close_reason(
    position: Position,
    price: float,
    take_profit: float,
    stop_loss: float,
    now: datetime,
    policy: Policy,
) -> Optional[CloseReason]:
    """
    Close trigger for an open position, checked in fixed priority:
    take profit, then stop loss, then time limit.
    """
    if position.direction is Direction.BUY:
        if price >= take_profit:
            return CloseReason.TAKE_PROFIT
        if price <= stop_loss:
            return CloseReason.STOP_LOSS
    else:
        if price <= take_profit:
            return CloseReason.TAKE_PROFIT
        if price >= stop_loss:
            return CloseReason.STOP_LOSS

    max_minutes = config.MAX_TRADE_DURATION_MIN[policy.investment_style.value]
    if elapsed_minutes(position, now) > max_minutes:
        return CloseReason.TIME_LIMIT

    return None


class PositionLifecycleManager:
    """
    Open/monitor/close state machine for simulated positions.
    """

    def __init__(
        self,
        store: IStateStore,
        confidence: ConfidenceController,
        notifier: INotifier,
        policy_provider: Callable[[], Policy],
        positions: Optional[List[Position]] = None,
    ) -> None:
        """
        Args:
            store: Persistence for the positions record.
            confidence: Controller updated after every close.
            notifier: Webhook dispatcher for open/close events.
            policy_provider: Returns the policy in force right now.
            positions: Positions loaded at startup.
        """
        self._store = store
        self._confidence = confidence
        self._notifier = notifier
        self._policy_provider = policy_provider
        self._positions: List[Position] = list(positions or [])

    @property
    def positions(self) -> List[Position]:
        return self._positions

    def open_positions(self) -> List[Position]:
        return [p for p in self._positions if p.is_open]

    def open_asset_ids(self) -> set:
        return {p.asset_id for p in self._positions if p.is_open}

    def open(self, quote: Quote, direction: Direction, now: datetime) -> Position:
        """
        Open a simulated position at the quote's price.

        Duplicate positions on one asset are prevented upstream by the
        classifier's exclusion set, not here.

        Raises:
            ValueError: if the quote price is not positive.
        """
        if not quote.price or quote.price <= 0:
            raise ValueError(f"Cannot open position on {quote.symbol}: invalid price {quote.price!r}")

        policy = self._policy_provider()
        confidence = self._confidence.value

        notional = size_usd(policy, confidence)
        take_profit, stop_loss = calculate_targets(quote.price, direction, policy, confidence)

        position = Position(
            id=f"{quote.id}-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:6]}",
            asset_id=quote.id,
            symbol=quote.symbol,
            direction=direction,
            entry_price=quote.price,
            notional_usd=notional,
            opened_at=now,
            take_profit_price=take_profit,
            stop_loss_price=stop_loss,
            metadata={
                "risk_tolerance": policy.risk_tolerance.value,
                "investment_style": policy.investment_style.value,
                "confidence_at_open": confidence,
            },
        )

        self._positions.append(position)
        self._store.save_positions(self._positions)
        self._notifier.dispatch_event(EVENT_TRADE_OPEN, position, policy)

        logger.info(
            f"Opened {direction.value} {quote.symbol} at ${quote.price:,.6g} size ${notional:,.2f} "
            f"(Style: {policy.investment_style.value}, Risk: {policy.risk_tolerance.value}, "
            f"Confidence: {confidence:.1f}%)"
        )
        return position

    def update_open_positions(self, quotes: Iterable[Quote], now: datetime) -> List[Position]:
        """
        Mark open positions to market and close those that hit a trigger.

        Positions whose asset has no quote in this snapshot are left untouched.

        Returns:
            Positions closed during this call.
        """
        price_map = {}
        for quote in quotes:
            price_map.setdefault(quote.id, quote.price)

        closed: List[Position] = []
        pending_save = False

        for position in self._positions:
            if not position.is_open:
                continue
            price = price_map.get(position.asset_id)
            if price is None or price <= 0:
                continue

            policy = self._policy_provider()
            confidence = self._confidence.value

            position.floating_pnl = floating_pnl(position, price)
            take_profit, stop_loss = calculate_targets(position.entry_price, position.direction, policy, confidence)
            position.take_profit_price = take_profit
            position.stop_loss_price = stop_loss
            pending_save = True

            reason = evaluate_close_reason(position, price, take_profit, stop_loss, now, policy)
            if reason is None:
                continue

            position.status = PositionStatus.CLOSED
            position.close_price = price
            position.closed_at = now
            position.close_reason = reason
            position.realized_pnl = position.floating_pnl

            self._store.save_positions(self._positions)
            pending_save = False

            logger.info(
                f"Auto-closing {position.id} for {position.symbol}. Reason: {reason.value}. "
                f"P/L: ${position.realized_pnl:,.2f}"
            )
            self._confidence.on_close(position, policy.investment_style)
            self._notifier.dispatch_event(EVENT_TRADE_CLOSE, position, policy)
            closed.append(position)

        if pending_save:
            self._store.save_positions(self._positions)

        return closed

    def reset(self) -> None:
        self._positions = []
        self._store.save_positions(self._positions)
