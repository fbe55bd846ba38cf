# JaxSpot Position Sizer
"""
Notional sizing for new positions as a function of policy and confidence.
"""

from jaxspot.core import config
from jaxspot.core.models import Policy


def base_size_usd(policy: Policy) -> float:
    """Base notional for the policy's style and risk tolerance, before confidence."""
    style_multiplier = config.STYLE_SIZE_MULTIPLIER[policy.investment_style.value]
    risk_multiplier = config.RISK_SIZE_MULTIPLIER[policy.risk_tolerance.value]
    return config.BASE_TRADE_SIZE_USD * style_multiplier * risk_multiplier


def size_usd(policy: Policy, confidence: float) -> float:
    """
    Notional in USD for a new position.

    75% confidence is the neutral baseline and reproduces the base size
    exactly; every point above or below moves the size by 1% of base.

    Args:
        policy: Current policy.
        confidence: Confidence scalar in [50, 95].

    Returns:
        Position notional in USD.
    """
    base = base_size_usd(policy)
    adjustment = base * (confidence / 100.0 - config.CONFIDENCE_NEUTRAL / 100.0)
    return base + adjustment
