"""
Shared fixtures for the JaxSpot test suite.
"""

from datetime import datetime, timezone

import pytest

from jaxspot.core.models import Quote, Policy
from jaxspot.core.state_store import InMemoryStateStore
from jaxspot.sim.clock import ManualClock


class RecordingNotifier:
    """Notifier stand-in that records what would have been sent."""

    def __init__(self):
        self.events = []
        self.tests = []

    def dispatch_event(self, kind, position, policy):
        self.events.append((kind, position.to_dict()))

    def dispatch_test(self, policy):
        self.tests.append(policy)

    def kinds(self):
        return [kind for kind, _ in self.events]


def make_quote(asset_id="btc", price=100.0, change=10.0, market_cap=5e11, symbol=None):
    return Quote(
        id=asset_id,
        symbol=symbol or asset_id.upper(),
        price=price,
        change_24h_pct=change,
        market_cap_usd=market_cap,
    )


@pytest.fixture
def start_time():
    return datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(start_time):
    return ManualClock(start_time)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def store():
    return InMemoryStateStore(policy=Policy())


@pytest.fixture
def quote_factory():
    return make_quote
