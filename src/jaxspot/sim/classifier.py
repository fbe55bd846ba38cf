"""
Asset Classifier (Admission Funnel)
===================================

Partitions a quote snapshot into four mutually exclusive funnel stages.

Each asset runs an ordered screen chain and stops at the first failure:
1. Momentum screen:  24h change > 2%          (fail -> Stage 1)
2. Liquidity screen: market cap > $100M       (fail -> Stage 2)
3. Risk screen:      24h change < 25%         (fail -> Stage 3)
4. All passed -> Stage 4, scored for confidence.

Thresholds are strict. A missing market cap is treated as exactly $100M,
so such assets never pass the liquidity screen.

The classifier is a pure function of its inputs. It never touches positions.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Iterable, Collection

import pandas as pd

from jaxspot.core import config
from jaxspot.core.models import Quote


STAGE_KEYS = ("stage1", "stage2", "stage3", "stage4")

STAGE_TITLES: Dict[str, str] = {
    "stage1": "Momentum Watch",
    "stage2": "Liquidity Screen",
    "stage3": "Risk Screen",
    "stage4": "Execution Candidates",
}


# --- Configuration ---

@dataclass
class FunnelConfig:
    """Screen thresholds and confidence scoring weights."""

    momentum_min_change_pct: float = config.MOMENTUM_MIN_CHANGE_PCT
    liquidity_min_market_cap_usd: float = config.LIQUIDITY_MIN_MARKET_CAP_USD
    missing_market_cap_usd: float = config.MISSING_MARKET_CAP_USD
    risk_max_change_pct: float = config.RISK_MAX_CHANGE_PCT

    momentum_weight: float = config.MOMENTUM_WEIGHT
    market_cap_weight: float = config.MARKET_CAP_WEIGHT
    market_cap_log_floor: float = config.MARKET_CAP_LOG_FLOOR
    market_cap_log_span: float = config.MARKET_CAP_LOG_SPAN


# --- Dataclasses ---

@dataclass
class StagePlacement:
    """One asset's place in the funnel."""
    quote: Quote
    stage: str
    explanation: str
    confidence: Optional[float] = None  # Stage 4 only


@dataclass
class FunnelResult:
    """Stage buckets for one snapshot. Recomputed every tick, never persisted."""
    stage1: List[StagePlacement] = field(default_factory=list)
    stage2: List[StagePlacement] = field(default_factory=list)
    stage3: List[StagePlacement] = field(default_factory=list)
    stage4: List[StagePlacement] = field(default_factory=list)
    explanations: Dict[str, str] = field(default_factory=dict)

    def bucket(self, stage: str) -> List[StagePlacement]:
        return getattr(self, stage)

    def stage_of(self, asset_id: str) -> Optional[str]:
        for key in STAGE_KEYS:
            if any(p.quote.id == asset_id for p in self.bucket(key)):
                return key
        return None

    def ids(self, stage: str) -> List[str]:
        return [p.quote.id for p in self.bucket(stage)]

    def counts(self) -> Dict[str, int]:
        return {key: len(self.bucket(key)) for key in STAGE_KEYS}

    def to_frame(self) -> pd.DataFrame:
        """Flat table of placements, one row per asset."""
        rows = []
        for key in STAGE_KEYS:
            for p in self.bucket(key):
                rows.append({
                    "asset_id": p.quote.id,
                    "symbol": p.quote.symbol,
                    "stage": key,
                    "stage_title": STAGE_TITLES[key],
                    "price": p.quote.price,
                    "change_24h_pct": p.quote.change_24h_pct,
                    "market_cap_usd": p.quote.market_cap_usd,
                    "confidence": p.confidence,
                    "explanation": p.explanation,
                })
        columns = [
            "asset_id", "symbol", "stage", "stage_title", "price",
            "change_24h_pct", "market_cap_usd", "confidence", "explanation",
        ]
        return pd.DataFrame(rows, columns=columns)


# --- Screens ---

def _clamp01(value: float) -> float:
    return min(1.0, max(0.0, value))


def _format_cap(cap: Optional[float]) -> str:
    if cap is None:
        return "N/A"
    return f"${cap / 1_000_000:,.0f}M"


def passes_momentum(quote: Quote, cfg: FunnelConfig) -> bool:
    return quote.change_24h_pct > cfg.momentum_min_change_pct


def passes_liquidity(quote: Quote, cfg: FunnelConfig) -> bool:
    cap = quote.market_cap_usd if quote.market_cap_usd is not None else cfg.missing_market_cap_usd
    return cap > cfg.liquidity_min_market_cap_usd


def passes_risk(quote: Quote, cfg: FunnelConfig) -> bool:
    return quote.change_24h_pct < cfg.risk_max_change_pct


def score_confidence(quote: Quote, cfg: Optional[FunnelConfig] = None) -> float:
    """
    Execution confidence (0-100) for an asset that passed every screen.

    Momentum saturates at the risk ceiling (25%); market cap is scored on a
    log scale from $100M to roughly $5T.
    """
    if cfg is None:
        cfg = FunnelConfig()

    momentum_span = cfg.risk_max_change_pct - cfg.momentum_min_change_pct
    momentum_score = _clamp01((quote.change_24h_pct - cfg.momentum_min_change_pct) / momentum_span)

    cap = quote.market_cap_usd if quote.market_cap_usd is not None else cfg.missing_market_cap_usd
    market_cap_score = _clamp01((math.log10(cap) - cfg.market_cap_log_floor) / cfg.market_cap_log_span)

    return (momentum_score * cfg.momentum_weight + market_cap_score * cfg.market_cap_weight) * 100.0


def place_quote(quote: Quote, cfg: Optional[FunnelConfig] = None) -> StagePlacement:
    """Run the ordered screen chain for a single asset."""
    if cfg is None:
        cfg = FunnelConfig()

    change = quote.change_24h_pct

    if not passes_momentum(quote, cfg):
        return StagePlacement(
            quote=quote,
            stage="stage1",
            explanation=f"24h change > {cfg.momentum_min_change_pct:g}% (current: {change:.2f}%)",
        )

    if not passes_liquidity(quote, cfg):
        return StagePlacement(
            quote=quote,
            stage="stage2",
            explanation=(
                f"Market cap > {_format_cap(cfg.liquidity_min_market_cap_usd)} "
                f"(current: {_format_cap(quote.market_cap_usd)})"
            ),
        )

    if not passes_risk(quote, cfg):
        return StagePlacement(
            quote=quote,
            stage="stage3",
            explanation=f"24h change < {cfg.risk_max_change_pct:g}% (current: {change:.2f}%)",
        )

    confidence = score_confidence(quote, cfg)
    return StagePlacement(
        quote=quote,
        stage="stage4",
        explanation=f"Passed all screens; confidence {confidence:.1f}%",
        confidence=confidence,
    )


def classify(
    quotes: Iterable[Quote],
    excluded_ids: Collection[str] = (),
    cfg: Optional[FunnelConfig] = None,
) -> FunnelResult:
    """
    Partition quotes into the four funnel stages.

    Args:
        quotes: Current snapshot.
        excluded_ids: Asset ids already backing an open position.
        cfg: Optional threshold overrides.

    Returns:
        FunnelResult where every non-excluded quote sits in exactly one stage.
    """
    if cfg is None:
        cfg = FunnelConfig()

    excluded = set(excluded_ids)
    result = FunnelResult()
    seen = set()

    for quote in quotes:
        # A snapshot may list an asset twice; the first occurrence wins
        if quote.id in excluded or quote.id in seen:
            continue
        seen.add(quote.id)

        placement = place_quote(quote, cfg)
        result.bucket(placement.stage).append(placement)
        result.explanations[quote.id] = placement.explanation

    return result
