"""
Tests for the admission funnel classifier.
"""

import math
import random

import pytest

from jaxspot.core.models import Quote
from jaxspot.sim.classifier import (
    STAGE_KEYS,
    FunnelConfig,
    classify,
    place_quote,
    score_confidence,
)


def _q(asset_id, change, cap):
    return Quote(id=asset_id, symbol=asset_id.upper(), price=1.0, change_24h_pct=change, market_cap_usd=cap)


def test_weak_momentum_lands_in_stage1():
    """change 1.0% fails the momentum screen regardless of market cap."""
    placement = place_quote(_q("a", 1.0, 5e9))
    assert placement.stage == "stage1"
    assert placement.confidence is None
    assert "1.00%" in placement.explanation


def test_qualified_asset_lands_in_stage4_with_confidence():
    placement = place_quote(_q("a", 10.0, 5e8))

    expected = (
        min(1.0, max(0.0, 8 / 23)) * 0.7
        + min(1.0, max(0.0, (math.log10(5e8) - 8) / 4.7)) * 0.3
    ) * 100
    assert placement.stage == "stage4"
    assert placement.confidence == pytest.approx(expected)
    assert placement.confidence == pytest.approx(28.81, abs=0.01)


def test_thresholds_are_strict():
    # Exactly 2% does not pass momentum
    assert place_quote(_q("a", 2.0, 5e9)).stage == "stage1"
    # Exactly $100M does not pass liquidity
    assert place_quote(_q("b", 10.0, 100_000_000)).stage == "stage2"
    # Exactly 25% does not pass risk
    assert place_quote(_q("c", 25.0, 5e9)).stage == "stage3"


def test_missing_market_cap_always_fails_liquidity():
    """A missing cap is treated as exactly $100M, which never passes."""
    placement = place_quote(_q("a", 10.0, None))
    assert placement.stage == "stage2"
    assert "N/A" in placement.explanation


def test_liquidity_is_checked_before_risk():
    # Too hot AND illiquid: the first failing screen decides
    assert place_quote(_q("a", 40.0, 1e6)).stage == "stage2"


def test_scores_saturate():
    # 25%+ momentum cannot reach stage 4, so check the scorer directly
    assert score_confidence(_q("a", 30.0, 1e14)) == pytest.approx(100.0)
    assert score_confidence(_q("a", 2.0, 1e8)) == pytest.approx(0.0)


def test_excluded_ids_are_skipped():
    quotes = [_q("a", 10.0, 5e9), _q("b", 1.0, 5e9)]
    result = classify(quotes, excluded_ids={"a"})

    assert result.stage_of("a") is None
    assert "a" not in result.explanations
    assert result.stage_of("b") == "stage1"


def test_duplicate_quotes_are_placed_once():
    quotes = [_q("a", 10.0, 5e9), _q("a", 1.0, 5e9)]
    result = classify(quotes)
    assert sum(result.counts().values()) == 1
    assert result.stage_of("a") == "stage4"


def test_classify_partitions_random_snapshots():
    """Every non-excluded quote sits in exactly one stage."""
    rng = random.Random(42)
    quotes = []
    for i in range(500):
        change = rng.uniform(-30.0, 60.0)
        cap = rng.choice([None, 0.0, 1e7, 1e8, 2e8, 5e9, 3e12])
        quotes.append(_q(f"asset{i}", change, cap))
    excluded = {f"asset{i}" for i in range(0, 500, 7)}

    result = classify(quotes, excluded)

    seen = []
    for key in STAGE_KEYS:
        seen.extend(result.ids(key))
    assert len(seen) == len(set(seen))
    assert set(seen) == {q.id for q in quotes} - excluded
    assert set(result.explanations) == set(seen)


def test_custom_config_changes_thresholds():
    cfg = FunnelConfig(momentum_min_change_pct=5.0)
    assert place_quote(_q("a", 4.0, 5e9), cfg).stage == "stage1"


def test_to_frame_has_one_row_per_asset():
    quotes = [_q("a", 10.0, 5e9), _q("b", 1.0, 5e9), _q("c", 10.0, None), _q("d", 30.0, 5e9)]
    df = classify(quotes).to_frame()

    assert len(df) == 4
    assert list(df.sort_values("asset_id")["stage"]) == ["stage4", "stage1", "stage2", "stage3"]
    assert df.loc[df["asset_id"] == "a", "confidence"].notna().all()


def test_empty_snapshot():
    result = classify([])
    assert result.counts() == {"stage1": 0, "stage2": 0, "stage3": 0, "stage4": 0}
    assert result.to_frame().empty
