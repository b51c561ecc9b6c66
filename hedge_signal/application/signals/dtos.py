"""
Data Transfer Objects for the signals application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from hedge_signal.domain.signals.entities import (
    MarketSnapshot,
    RiskThreshold,
    TradingSignal,
)
from hedge_signal.domain.signals.payment import PaymentRequirement


@dataclass(frozen=True)
class GetSignalCommand:
    """Input DTO for requesting a paid trading signal.

    Attributes:
        portfolio_value: Total portfolio value in USD.
        hedge_percent: Current hedge asset allocation (0-100).
        risk_tolerance: Raw tolerance string, validated by the use case.
        user_address: Optional wallet address used for ledger lookup.
        receipt: Raw JSON payment receipt, if the caller sent one.
    """

    portfolio_value: Decimal
    hedge_percent: Decimal
    risk_tolerance: str
    user_address: Optional[str] = None
    receipt: Optional[str] = None


@dataclass(frozen=True)
class SignalResult:
    """Output DTO for a released signal.

    Attributes:
        signal: The trading signal.
        market: Market snapshot the signal was computed from.
        paid: True if a real payment proof was verified.
        cached: True if the signal was served from the cache.
        actionable: True if the tolerance's confidence floor is met.
        threshold: The tolerance's risk limits.
    """

    signal: TradingSignal
    market: MarketSnapshot
    paid: bool
    cached: bool
    actionable: bool
    threshold: RiskThreshold


@dataclass(frozen=True)
class SignalPreviewResult:
    """Output DTO for the free signal teaser.

    Attributes:
        requirement: What to pay to unlock the full signal.
        price: Current hedge asset price.
        change_24h_percent: Current 24h price change.
    """

    requirement: PaymentRequirement
    price: Decimal
    change_24h_percent: Decimal
