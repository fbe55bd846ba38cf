# JaxSpot Trade Simulation Engine
"""
TradeSimEngine: the single owner of positions, policy and confidence.

Built once by the process entry point with its store, notifier and clock
injected, then passed by handle to every caller. Every mutating method runs
under one re-entrant lock so two ticks never mutate concurrently. Observers
are notified after the lock is released.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional

from jaxspot.core import config
from jaxspot.core.logging_utils import get_logger
from jaxspot.core.models import Quote, Policy, Position, Direction, apply_policy_update
from jaxspot.sim.classifier import FunnelConfig, FunnelResult, classify
from jaxspot.sim.clock import IClock, SystemClock
from jaxspot.sim.confidence import ConfidenceController
from jaxspot.sim.interfaces import IStateStore, INotifier
from jaxspot.sim.lifecycle import PositionLifecycleManager
from jaxspot.sim.observers import ObserverRegistry

logger = get_logger(__name__)


@dataclass
class TickReport:
    """What one evaluation tick did."""
    timestamp: datetime
    funnel: FunnelResult
    opened: list[Position] = field(default_factory=list)
    closed: list[Position] = field(default_factory=list)


class TradeSimEngine:
    """
    Trade simulation engine.

    Pipeline per tick:
    1. Mark open positions to market and close triggered ones
    2. Classify the snapshot, excluding assets with an open position
    3. Open Buy positions for Stage 4 assets above the confidence threshold
    """

    def __init__(
        self,
        store: IStateStore,
        notifier: INotifier,
        clock: Optional[IClock] = None,
        funnel_config: Optional[FunnelConfig] = None,
    ) -> None:
        """
        Initialize the engine and load persisted state.

        Args:
            store: Persistence for positions, policy and confidence.
            notifier: Webhook dispatcher.
            clock: Time source; defaults to the system clock.
            funnel_config: Optional funnel threshold overrides.
        """
        self._lock = threading.RLock()
        self._store = store
        self._notifier = notifier
        self._clock = clock or SystemClock()
        self._funnel_config = funnel_config or FunnelConfig()
        self._observers = ObserverRegistry()

        self._policy = store.load_policy()
        self._confidence = ConfidenceController(store, store.load_confidence())
        self._lifecycle = PositionLifecycleManager(
            store=store,
            confidence=self._confidence,
            notifier=notifier,
            policy_provider=lambda: self._policy,
            positions=store.load_positions(),
        )

        logger.info(
            f"Engine ready: {len(self._lifecycle.positions)} position(s), "
            f"{len(self._lifecycle.open_positions())} open, confidence {self._confidence.value:.2f}%"
        )

    # --- Observers ---

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._observers.subscribe(listener)

    def unsubscribe(self, listener: Callable[[], None]) -> None:
        self._observers.unsubscribe(listener)

    # --- Read side ---

    def get_all_positions(self) -> list[Position]:
        """Copies of every position; mutating them does not affect the engine."""
        with self._lock:
            return copy.deepcopy(self._lifecycle.positions)

    def get_open_positions(self) -> list[Position]:
        with self._lock:
            return copy.deepcopy(self._lifecycle.open_positions())

    def get_policy(self) -> Policy:
        with self._lock:
            return replace(self._policy)

    def get_confidence(self) -> float:
        with self._lock:
            return self._confidence.value

    def classify(self, quotes: Iterable[Quote]) -> FunnelResult:
        """Funnel view of a snapshot. Reads positions, never writes them."""
        with self._lock:
            excluded = self._lifecycle.open_asset_ids()
        return classify(quotes, excluded, self._funnel_config)

    def recommended_holds(self, now: Optional[datetime] = None) -> list[Position]:
        """
        Profitable positions closed within the last week, latest per asset.
        """
        now = now or self._clock.now()
        cutoff = now - timedelta(days=config.HOLDS_LOOKBACK_DAYS)
        latest: dict[str, Position] = {}
        with self._lock:
            for p in self._lifecycle.positions:
                if p.is_open or (p.realized_pnl or 0.0) <= 0 or p.closed_at is None or p.closed_at <= cutoff:
                    continue
                current = latest.get(p.asset_id)
                if current is None or p.closed_at > current.closed_at:
                    latest[p.asset_id] = p
            return copy.deepcopy(list(latest.values()))

    def active_positions_view(self, quotes: Iterable[Quote]) -> list[dict[str, Any]]:
        """Open positions joined with their latest quote, if any."""
        quote_map: dict[str, Quote] = {}
        for q in quotes:
            quote_map.setdefault(q.id, q)
        rows = []
        with self._lock:
            for p in self._lifecycle.open_positions():
                q = quote_map.get(p.asset_id)
                rows.append({
                    "position_id": p.id,
                    "asset_id": p.asset_id,
                    "symbol": p.symbol,
                    "direction": p.direction.value,
                    "entry_price": p.entry_price,
                    "current_price": q.price if q else None,
                    "floating_pnl": p.floating_pnl,
                    "take_profit_price": p.take_profit_price,
                    "stop_loss_price": p.stop_loss_price,
                })
        return rows

    # --- Write side ---

    def update_policy(self, **partial: Any) -> Policy:
        """
        Apply a partial policy edit.

        Raises:
            PolicyValidationError: if any field is invalid; nothing is saved.
        """
        with self._lock:
            updated = apply_policy_update(self._policy, partial)
            self._policy = updated
            self._store.save_policy(updated)
            result = replace(updated)
        logger.info(f"Policy updated: {sorted(partial)}")
        self._observers.notify()
        return result

    def open_position(self, quote: Quote, direction: Direction = Direction.BUY) -> Position:
        with self._lock:
            position = copy.deepcopy(self._lifecycle.open(quote, direction, self._clock.now()))
        self._observers.notify()
        return position

    def update_open_positions(self, quotes: Iterable[Quote]) -> list[Position]:
        """Mark to market and close triggered positions. Returns closed copies."""
        with self._lock:
            had_open = bool(self._lifecycle.open_positions())
            closed = self._lifecycle.update_open_positions(list(quotes), self._clock.now())
            result = copy.deepcopy(closed)
        if had_open:
            self._observers.notify()
        return result

    def tick(self, quotes: Iterable[Quote]) -> TickReport:
        """
        Run one evaluation tick against a price snapshot.
        """
        quotes = list(quotes)
        with self._lock:
            now = self._clock.now()
            closed = self._lifecycle.update_open_positions(quotes, now)

            funnel = classify(quotes, self._lifecycle.open_asset_ids(), self._funnel_config)

            opened = []
            threshold = self._policy.confidence_threshold_pct
            for placement in funnel.stage4:
                if (placement.confidence or 0.0) <= threshold:
                    continue
                try:
                    opened.append(self._lifecycle.open(placement.quote, Direction.BUY, now))
                except ValueError as e:
                    logger.warning(f"Skipping auto-execution: {e}")

            report = TickReport(
                timestamp=now,
                funnel=funnel,
                opened=copy.deepcopy(opened),
                closed=copy.deepcopy(closed),
            )

        counts = funnel.counts()
        logger.info(
            f"Tick: {len(quotes)} quotes, funnel {counts['stage1']}/{counts['stage2']}/"
            f"{counts['stage3']}/{counts['stage4']}, opened {len(opened)}, closed {len(closed)}"
        )
        self._observers.notify()
        return report

    def reset_wallet(self) -> None:
        """Clear every position and restore default policy and confidence."""
        with self._lock:
            self._lifecycle.reset()
            self._policy = Policy()
            self._store.save_policy(self._policy)
            self._confidence.reset()
        logger.info("Simulated wallet has been reset.")
        self._observers.notify()

    def test_webhook(self) -> None:
        """Queue a test webhook with the current policy."""
        self._notifier.dispatch_test(self.get_policy())
