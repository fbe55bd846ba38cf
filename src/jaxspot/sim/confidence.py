# JaxSpot Confidence Controller
"""
Owns the adaptive confidence scalar and updates it from closed positions.

The adjustment is deliberately asymmetric: losses weigh twice as much as
gains, stop-losses are amplified more than take-profits, and fast reversals
carry an extra penalty. The scalar is always clamped to [50, 95].
"""

from jaxspot.core import config
from jaxspot.core.logging_utils import get_logger
from jaxspot.core.models import Position, CloseReason, InvestmentStyle
from jaxspot.sim.interfaces import IStateStore

logger = get_logger(__name__)


def clamp_confidence(value: float) -> float:
    return max(config.CONFIDENCE_MIN, min(config.CONFIDENCE_MAX, value))


def confidence_delta(position: Position, style: InvestmentStyle) -> float:
    """
    Confidence change caused by a closed position.

    Args:
        position: A closed position with realized pnl.
        style: Investment style in force when the position closed.

    Returns:
        Signed delta, before clamping.
    """
    if position.close_reason is CloseReason.TIME_LIMIT:
        return config.TIME_LIMIT_CONFIDENCE_DELTA

    pnl_pct = (position.realized_pnl or 0.0) / position.notional_usd * 100.0
    weight = config.GAIN_WEIGHT if pnl_pct >= 0 else config.LOSS_WEIGHT
    delta = pnl_pct * weight

    if position.close_reason is CloseReason.TAKE_PROFIT:
        delta *= config.TAKE_PROFIT_AMPLIFIER
    elif position.close_reason is CloseReason.STOP_LOSS:
        delta *= config.STOP_LOSS_AMPLIFIER

    duration_min = (position.closed_at - position.opened_at).total_seconds() / 60.0
    quick = duration_min < config.QUICK_TRADE_THRESHOLD_MIN[style.value]

    if quick and position.close_reason is CloseReason.TAKE_PROFIT:
        delta += config.QUICK_TAKE_PROFIT_BONUS
    if quick and position.close_reason is CloseReason.STOP_LOSS:
        delta -= config.QUICK_STOP_LOSS_PENALTY

    return delta


class ConfidenceController:
    """
    Single writer of the confidence scalar.

    Callers must hold the engine lock.
    """

    def __init__(self, store: IStateStore, initial: float = config.DEFAULT_CONFIDENCE) -> None:
        self._store = store
        self._value = clamp_confidence(float(initial))

    @property
    def value(self) -> float:
        return self._value

    def on_close(self, position: Position, style: InvestmentStyle) -> float:
        """
        Apply the adjustment for a closed position and persist the result.

        Returns:
            The new confidence value.
        """
        if position.realized_pnl is None or position.close_reason is None:
            logger.warning(f"Ignoring confidence update for unclosed position {position.id}")
            return self._value

        delta = confidence_delta(position, style)
        old = self._value
        self._value = clamp_confidence(old + delta)
        self._store.save_confidence(self._value)

        logger.info(
            f"Confidence {old:.2f}% -> {self._value:.2f}% (change: {delta:+.2f}) "
            f"after {position.close_reason.value} on {position.symbol}"
        )
        return self._value

    def reset(self) -> None:
        self._value = config.DEFAULT_CONFIDENCE
        self._store.save_confidence(self._value)
