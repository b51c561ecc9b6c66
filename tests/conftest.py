"""
Shared pytest configuration.

Settings are read once, when ``hedge_signal.core.config`` is first
imported, so the environment is pinned here before any test module
imports the application: no rate limits, no model key, a known payee.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

PAYEE = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
PAYER = "0x1111111111111111111111111111111111111111"

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GEMINI_API_KEY"] = ""
os.environ["PAYMENT_ADDRESS"] = PAYEE
os.environ["PAYMENT_BYPASS"] = "false"
os.environ["PAYMENT_VERIFY_ONCHAIN"] = "false"
os.environ["LEDGER_SEED_DEMO"] = "false"


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at 2025-01-01 12:00 UTC."""
    return FakeClock(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))
