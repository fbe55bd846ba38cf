"""
Tests for policy validation and record (de)serialization.
"""

from datetime import datetime, timedelta, timezone

import pytest

from jaxspot.core.errors import PolicyValidationError, JaxSpotError
from jaxspot.core.models import (
    Policy, RiskTolerance, InvestmentStyle, Direction,
    apply_policy_update, is_valid_webhook_url, parse_enum,
)


@pytest.mark.parametrize("raw", ["DayTrading", "Day Trading", "day_trading", "DAY_TRADING", InvestmentStyle.DAY_TRADING])
def test_parse_enum_is_lenient(raw):
    assert parse_enum(InvestmentStyle, raw) is InvestmentStyle.DAY_TRADING


def test_parse_enum_rejects_unknown():
    with pytest.raises(ValueError):
        parse_enum(RiskTolerance, "Reckless")


def test_direction_sign():
    assert Direction.BUY.sign == 1
    assert Direction.SELL.sign == -1


@pytest.mark.parametrize("url, ok", [
    ("https://hooks.example.com/abc", True),
    ("http://localhost:8080/hook", True),
    ("ftp://example.com", False),
    ("hooks.example.com/abc", False),
    ("https://", False),
    ("", False),
    (None, False),
])
def test_webhook_url_validation(url, ok):
    assert is_valid_webhook_url(url) is ok


def test_update_does_not_mutate_original():
    original = Policy()
    updated = apply_policy_update(original, {"risk_tolerance": "Conservative", "webhook_enabled": "yes"})

    assert original.risk_tolerance is RiskTolerance.MODERATE
    assert updated.risk_tolerance is RiskTolerance.CONSERVATIVE
    assert updated.webhook_enabled is True


def test_validation_error_is_domain_and_value_error():
    with pytest.raises(PolicyValidationError) as excinfo:
        apply_policy_update(Policy(), {"confidence_threshold_pct": -5})
    assert isinstance(excinfo.value, JaxSpotError)
    assert isinstance(excinfo.value, ValueError)


def test_unknown_keys_are_ignored():
    assert apply_policy_update(Policy(), {"leverage": 50}) == Policy()


def test_policy_dict_round_trip():
    policy = Policy(
        risk_tolerance=RiskTolerance.AGGRESSIVE,
        investment_style=InvestmentStyle.SCALPING,
        confidence_threshold_pct=72.5,
        webhook_url="https://hooks.example.com/x",
        webhook_enabled=True,
    )
    data = policy.to_dict()
    assert data["investment_style"] == "Scalping"
    assert Policy.from_dict(data) == policy


def test_naive_position_timestamps_load_as_utc():
    from jaxspot.core.models import Position

    position = Position.from_dict({
        "id": "eth-1",
        "asset_id": "eth",
        "direction": "Sell",
        "entry_price": 3000.0,
        "notional_usd": 500.0,
        "opened_at": "2024-05-01T08:00:00",
        "take_profit_price": 2850.0,
        "stop_loss_price": 3075.0,
        "status": "Closed",
        "closed_at": "2024-05-01T11:30:00+02:00",
        "close_reason": "TakeProfit",
        "realized_pnl": 25.0,
    })

    assert position.opened_at == datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
    assert position.closed_at.utcoffset() == timedelta(hours=2)
    assert position.closed_at - position.opened_at == timedelta(minutes=90)
