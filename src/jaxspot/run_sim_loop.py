"""
JaxSpot Simulator Entry Point
=============================

Builds the engine once with its store, price feed and webhook notifier, then
runs the evaluation loop until interrupted.

Usage:
    python src/jaxspot/run_sim_loop.py

Process settings come from the environment (.env); trading behaviour comes
from the persisted policy record.
"""

import sys
from pathlib import Path

# Add src directory to sys.path
project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from jaxspot.core import config
from jaxspot.core.logging_utils import get_logger, init_logging
from jaxspot.core.state_store import JsonStateStore
from jaxspot.feeds import build_price_feed
from jaxspot.sim.engine import TradeSimEngine
from jaxspot.sim.evaluation_loop import EvaluationLoop
from jaxspot.sim.notifier import WebhookNotifier
from jaxspot.sim.wallet_report import summarize_wallet

logger = get_logger(__name__)


def build_engine(store=None, notifier=None) -> TradeSimEngine:
    """Wire the engine from configuration."""
    return TradeSimEngine(
        store=store or JsonStateStore(),
        notifier=notifier or WebhookNotifier(),
    )


def main() -> None:
    init_logging()

    logger.info("=" * 60)
    logger.info(f"JAXSPOT SIMULATOR STARTING (env: {config.ENVIRONMENT}, feed: {config.PRICE_SOURCE})")
    logger.info("=" * 60)

    notifier = WebhookNotifier()
    engine = build_engine(notifier=notifier)
    loop = EvaluationLoop(engine, build_price_feed(), interval_sec=config.TICK_INTERVAL_SEC)

    try:
        loop.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down.")
    finally:
        loop.stop()
        notifier.shutdown()
        summary = summarize_wallet(engine.get_all_positions())
        logger.info(
            f"Wallet: {summary.closed_count} closed, {summary.open_count} open, "
            f"realized ${summary.total_realized_pnl:,.2f}, win rate {summary.win_rate_pct:.1f}%, "
            f"confidence {engine.get_confidence():.2f}%"
        )


if __name__ == "__main__":
    main()
