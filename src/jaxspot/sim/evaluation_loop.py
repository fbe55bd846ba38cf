"""
Evaluation Loop
===============

Periodic driver that pulls a price snapshot and feeds it into the engine.

A failed or empty snapshot skips the tick and leaves engine state unchanged;
any other error raised during a tick is logged with its traceback and the tick
is skipped. The next tick simply tries again.
"""

import threading
from typing import Optional

from jaxspot.core import config
from jaxspot.core.errors import PriceFeedError
from jaxspot.core.logging_utils import get_logger
from jaxspot.sim.engine import TradeSimEngine, TickReport
from jaxspot.sim.interfaces import IPriceFeed

logger = get_logger(__name__)


class EvaluationLoop:
    def __init__(
        self,
        engine: TradeSimEngine,
        feed: IPriceFeed,
        interval_sec: float = config.TICK_INTERVAL_SEC,
    ) -> None:
        self.engine = engine
        self.feed = feed
        self.interval_sec = max(0.0, float(interval_sec))
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks_run = 0
        self.ticks_skipped = 0

    def run_once(self) -> Optional[TickReport]:
        """
        Run a single tick.

        Returns:
            TickReport, or None if the tick was skipped.
        """
        try:
            quotes = self.feed.snapshot()
        except PriceFeedError as e:
            self.ticks_skipped += 1
            logger.warning(f"Price snapshot failed, skipping tick: {e}")
            return None
        except Exception:
            self.ticks_skipped += 1
            logger.exception("Error during simulation tick (price snapshot)")
            return None

        if not quotes:
            self.ticks_skipped += 1
            logger.warning("Empty price snapshot, skipping tick")
            return None

        try:
            report = self.engine.tick(quotes)
        except Exception:
            self.ticks_skipped += 1
            logger.exception("Error during simulation tick")
            return None

        self.ticks_run += 1
        return report

    def run_forever(self, max_ticks: Optional[int] = None) -> None:
        """Tick every interval until stop() is called or max_ticks is reached."""
        count = 0
        while not self._stop.is_set():
            self.run_once()
            count += 1
            if max_ticks is not None and count >= max_ticks:
                break
            self._stop.wait(self.interval_sec)

    def start(self) -> None:
        """Run the loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run_forever, name="jaxspot-loop", daemon=True)
        self._thread.start()

    def stop(self, timeout_sec: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout_sec)
            self._thread = None
