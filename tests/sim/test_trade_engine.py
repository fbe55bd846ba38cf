# Test Trade Simulation Engine
"""
Tests for TradeSimEngine: tick pipeline, policy edits, observers and resets.
"""

import threading
from datetime import timedelta

import pytest

from jaxspot.core.errors import PolicyValidationError
from jaxspot.core.models import Policy, RiskTolerance, InvestmentStyle, Direction, CloseReason
from jaxspot.core.state_store import InMemoryStateStore, JsonStateStore
from jaxspot.sim.engine import TradeSimEngine


@pytest.fixture
def engine(store, notifier, clock):
    return TradeSimEngine(store=store, notifier=notifier, clock=clock)


def _hot(quote_factory, asset_id="sol", price=100.0):
    # momentum 18/23, liquidity 4/4.7 -> confidence ~80.3
    return quote_factory(asset_id, price=price, change=20.0, market_cap=1e12)


def test_tick_auto_executes_confident_stage4_assets(engine, notifier, quote_factory):
    hot = _hot(quote_factory)
    lukewarm = quote_factory("ada", change=10.0, market_cap=5e8)
    flat = quote_factory("btc", change=0.5, market_cap=1e12)

    report = engine.tick([hot, lukewarm, flat])

    assert report.funnel.stage_of("sol") == "stage4"
    assert report.funnel.stage_of("ada") == "stage4"
    assert report.funnel.stage_of("btc") == "stage1"
    assert [p.asset_id for p in report.opened] == ["sol"]
    assert report.opened[0].direction is Direction.BUY
    assert [p.asset_id for p in engine.get_open_positions()] == ["sol"]
    assert notifier.kinds() == ["trade_open"]


def test_threshold_is_strict_and_editable(engine, quote_factory):
    engine.update_policy(confidence_threshold_pct=90)
    assert engine.tick([_hot(quote_factory)]).opened == []

    engine.update_policy(confidence_threshold_pct=0)
    assert len(engine.tick([quote_factory("ada", change=10.0, market_cap=5e8)]).opened) == 1


def test_open_asset_is_excluded_from_funnel(engine, quote_factory):
    engine.tick([_hot(quote_factory)])

    report = engine.tick([_hot(quote_factory, price=101.0)])

    assert report.funnel.stage_of("sol") is None
    assert report.opened == []
    assert len(engine.get_all_positions()) == 1
    assert engine.classify([_hot(quote_factory)]).stage_of("sol") is None


def test_closed_asset_can_reenter(engine, clock, quote_factory):
    engine.tick([_hot(quote_factory, price=100.0)])
    clock.advance(minutes=5)

    # 100 -> 120 clears the ~5% take profit; the same tick re-admits the asset
    report = engine.tick([_hot(quote_factory, price=120.0)])

    assert [p.close_reason for p in report.closed] == [CloseReason.TAKE_PROFIT]
    assert [p.asset_id for p in report.opened] == ["sol"]
    assert len(engine.get_all_positions()) == 2


def test_concurrent_ticks_open_one_position_per_asset(engine, quote_factory):
    snapshot = [_hot(quote_factory, asset_id=f"coin{i}") for i in range(5)]
    barrier = threading.Barrier(4)

    def worker():
        barrier.wait()
        engine.tick(snapshot)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    asset_ids = [p.asset_id for p in engine.get_open_positions()]
    assert sorted(asset_ids) == [f"coin{i}" for i in range(5)]


def test_update_policy_applies_and_persists(engine, store):
    policy = engine.update_policy(
        risk_tolerance="Aggressive",
        investment_style="Swing Trading",
        webhook_url="  https://hooks.example.com/jaxspot  ",
        webhook_enabled=True,
    )

    assert policy.risk_tolerance is RiskTolerance.AGGRESSIVE
    assert policy.investment_style is InvestmentStyle.SWING_TRADING
    assert policy.webhook_url == "https://hooks.example.com/jaxspot"
    assert store.load_policy() == policy
    assert engine.get_policy() == policy


@pytest.mark.parametrize("partial", [
    {"webhook_url": "not a url"},
    {"webhook_url": "ftp://example.com/hook"},
    {"risk_tolerance": "Reckless"},
    {"confidence_threshold_pct": 140},
    {"confidence_threshold_pct": "high"},
    {"risk_tolerance": "Aggressive", "webhook_url": "example.com"},
])
def test_invalid_policy_update_changes_nothing(engine, store, partial):
    before = engine.get_policy()
    saves_before = store.save_count

    with pytest.raises(PolicyValidationError):
        engine.update_policy(**partial)

    assert engine.get_policy() == before
    assert store.save_count == saves_before


def test_empty_webhook_url_clears_it(engine):
    engine.update_policy(webhook_url="https://hooks.example.com/a")
    assert engine.update_policy(webhook_url="").webhook_url is None


def test_observers_are_notified_without_payload(engine, quote_factory):
    calls = []

    def listener():
        calls.append(engine.get_confidence())

    engine.subscribe(listener)
    engine.tick([_hot(quote_factory)])
    engine.update_policy(risk_tolerance="Conservative")
    assert len(calls) == 2

    engine.unsubscribe(listener)
    engine.tick([_hot(quote_factory)])
    assert len(calls) == 2


def test_failing_observer_does_not_break_tick(engine, quote_factory):
    calls = []

    def broken():
        raise RuntimeError("listener bug")

    engine.subscribe(broken)
    engine.subscribe(lambda: calls.append(1))

    report = engine.tick([_hot(quote_factory)])

    assert len(report.opened) == 1
    assert calls == [1]


def test_returned_positions_are_copies(engine, quote_factory):
    engine.tick([_hot(quote_factory)])
    copy = engine.get_all_positions()[0]
    copy.entry_price = -1.0
    assert engine.get_all_positions()[0].entry_price == 100.0


def test_recommended_holds(engine, clock, quote_factory):
    """Profitable closes within a week, latest per asset."""
    engine.open_position(quote_factory("btc", price=100.0))
    engine.update_open_positions([quote_factory("btc", price=106.0)])
    clock.advance(hours=1)
    engine.open_position(quote_factory("btc", price=100.0))
    clock.advance(hours=1)
    engine.update_open_positions([quote_factory("btc", price=107.0)])
    latest_close = clock.now()

    engine.open_position(quote_factory("eth", price=100.0))
    engine.update_open_positions([quote_factory("eth", price=90.0)])

    holds = engine.recommended_holds()
    assert [(p.asset_id, p.closed_at) for p in holds] == [("btc", latest_close)]
    assert engine.recommended_holds(now=clock.now() + timedelta(days=8)) == []


def test_active_positions_view(engine, quote_factory):
    engine.open_position(quote_factory("btc", price=100.0))
    engine.open_position(quote_factory("eth", price=50.0))

    rows = engine.active_positions_view([quote_factory("btc", price=101.0)])

    by_asset = {row["asset_id"]: row for row in rows}
    assert by_asset["btc"]["current_price"] == 101.0
    assert by_asset["eth"]["current_price"] is None


def test_reset_wallet(engine, store, quote_factory):
    engine.update_policy(risk_tolerance="Aggressive", confidence_threshold_pct=10)
    engine.tick([_hot(quote_factory)])

    engine.reset_wallet()

    assert engine.get_all_positions() == []
    assert engine.get_policy() == Policy()
    assert engine.get_confidence() == 75.0
    assert store.load_positions() == []
    assert store.load_policy() == Policy()


def test_test_webhook_uses_current_policy(engine, notifier):
    engine.update_policy(webhook_url="https://hooks.example.com/a", webhook_enabled=True)
    engine.test_webhook()
    assert [p.webhook_url for p in notifier.tests] == ["https://hooks.example.com/a"]


def test_state_survives_restart(tmp_path, notifier, clock, quote_factory):
    first = TradeSimEngine(store=JsonStateStore(tmp_path), notifier=notifier, clock=clock)
    first.update_policy(investment_style="Scalping")
    first.tick([_hot(quote_factory)])
    first.update_open_positions([_hot(quote_factory, price=90.0)])
    first.tick([_hot(quote_factory, asset_id="avax")])

    second = TradeSimEngine(store=JsonStateStore(tmp_path), notifier=notifier, clock=clock)

    assert second.get_policy() == first.get_policy()
    assert second.get_confidence() == pytest.approx(first.get_confidence())
    assert second.get_confidence() < 75.0
    assert [p.to_dict() for p in second.get_all_positions()] == [p.to_dict() for p in first.get_all_positions()]
    assert [p.asset_id for p in second.get_open_positions()] == ["avax"]


def test_engine_with_corrupt_store_starts_clean(tmp_path, notifier, clock):
    (tmp_path / "positions.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "confidence.json").write_text('{"confidence": "high"}', encoding="utf-8")

    engine = TradeSimEngine(store=JsonStateStore(tmp_path), notifier=notifier, clock=clock)

    assert engine.get_all_positions() == []
    assert engine.get_confidence() == 75.0
    assert engine.get_policy() == Policy()


def test_default_store_policy_is_used(notifier, clock):
    store = InMemoryStateStore(policy=Policy(risk_tolerance=RiskTolerance.CONSERVATIVE), confidence=60.0)
    engine = TradeSimEngine(store=store, notifier=notifier, clock=clock)
    assert engine.get_policy().risk_tolerance is RiskTolerance.CONSERVATIVE
    assert engine.get_confidence() == 60.0
