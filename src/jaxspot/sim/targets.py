# JaxSpot Target Calculator
"""
Take-profit and stop-loss prices for a position.

Targets are a pure function of the entry, the direction and the *current*
policy and confidence. They are evaluated at open and again on every
monitoring tick, so a policy or confidence change moves the live targets of
positions that are still open.
"""

from jaxspot.core import config
from jaxspot.core.models import Direction, Policy


def target_percentages(policy: Policy, confidence: float) -> tuple[float, float]:
    """
    Scaled (take profit %, stop loss %) for a policy and confidence.

    The stop-loss percentage is negative.
    """
    tp_pct, sl_pct = config.RISK_TARGET_PCT[policy.risk_tolerance.value]

    style_factor = config.STYLE_TARGET_MULTIPLIER[policy.investment_style.value]
    tp_pct *= style_factor
    sl_pct *= style_factor

    # 50 -> 0.5x (tighter), 95 -> 1.4x (wider)
    confidence_factor = 1.0 + (confidence - config.CONFIDENCE_NEUTRAL) / config.CONFIDENCE_TARGET_SPAN
    tp_pct *= confidence_factor
    sl_pct *= confidence_factor

    return tp_pct, sl_pct


def calculate_targets(entry_price: float, direction: Direction, policy: Policy, confidence: float) -> tuple[float, float]:
    """
    Calculate take-profit and stop-loss prices.

    Args:
        entry_price: Position entry price.
        direction: Buy or Sell.
        policy: Current policy.
        confidence: Current confidence scalar.

    Returns:
        (take_profit_price, stop_loss_price)
    """
    tp_pct, sl_pct = target_percentages(policy, confidence)

    if direction is Direction.BUY:
        take_profit = entry_price * (1 + tp_pct / 100.0)
        stop_loss = entry_price * (1 + sl_pct / 100.0)
    else:
        take_profit = entry_price * (1 - tp_pct / 100.0)
        stop_loss = entry_price * (1 - sl_pct / 100.0)

    return take_profit, stop_loss
