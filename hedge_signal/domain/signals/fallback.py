"""
Rule-based signal generation.

Used whenever the recommendation model is unavailable or returns
unusable output. Evaluates a fixed decision table against the market
and portfolio snapshot; first matching rule wins. Never performs IO.

Confidence jitter is drawn from an injected ``random.Random`` so the
output is reproducible under a fixed seed.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from hedge_signal.domain.signals.entities import (
    HUNDRED,
    MarketSnapshot,
    PortfolioSnapshot,
    RiskLevel,
    RiskTolerance,
    SignalAction,
    SignalSource,
    TradingSignal,
    round_cents,
)
from hedge_signal.domain.signals.risk_policy import (
    cap_trade_percent,
    confidence_multiplier,
)

MAX_FALLBACK_CONFIDENCE = Decimal("95")

INFLATION_BUY_THRESHOLD = Decimal("3.5")
INFLATION_BUY_MAX_HEDGE = Decimal("40")
RALLY_SELL_THRESHOLD = Decimal("3")
RALLY_SELL_MIN_HEDGE = Decimal("55")
DIP_BUY_THRESHOLD = Decimal("-3")
DIP_BUY_MAX_HEDGE = Decimal("45")


@dataclass(frozen=True)
class FallbackRule:
    """One row of the decision table."""

    name: str
    action: SignalAction
    confidence_low: int
    confidence_high: int
    target_allocation: Optional[Decimal]
    risk_level: RiskLevel
    suggested_percent: Decimal
    matches: Callable[[MarketSnapshot, PortfolioSnapshot], bool]
    explain: Callable[[MarketSnapshot, PortfolioSnapshot], str]


def _inflation_hedge(market: MarketSnapshot, portfolio: PortfolioSnapshot) -> str:
    return (
        f"With inflation at {market.inflation_rate_percent:.1f}% (above the 2% target), "
        "the hedge asset provides important inflation protection. Your current "
        f"{portfolio.hedge_percent:.0f}% hedge allocation is below optimal levels."
    )


def _take_profit(market: MarketSnapshot, portfolio: PortfolioSnapshot) -> str:
    return (
        f"The hedge asset has surged {market.change_24h_percent:.1f}% in 24 hours. "
        "Consider taking profits and rebalancing your "
        f"{portfolio.hedge_percent:.0f}% hedge position to lock in gains."
    )


def _buy_the_dip(market: MarketSnapshot, portfolio: PortfolioSnapshot) -> str:
    return (
        f"The hedge asset has dipped {abs(market.change_24h_percent):.1f}% in 24 hours, "
        f"potentially offering a buying opportunity at ${market.price:.2f}."
    )


def _stay_put(market: MarketSnapshot, portfolio: PortfolioSnapshot) -> str:
    return (
        "Market conditions are relatively stable. Your current "
        f"{portfolio.hedge_percent:.0f}% hedge allocation is within reasonable "
        "bounds. Monitor for better entry/exit opportunities."
    )


DECISION_TABLE: tuple[FallbackRule, ...] = (
    FallbackRule(
        name="inflation_hedge",
        action=SignalAction.BUY_HEDGE,
        confidence_low=72,
        confidence_high=90,
        target_allocation=Decimal("50"),
        risk_level=RiskLevel.LOW,
        suggested_percent=Decimal("25"),
        matches=lambda m, p: (
            m.inflation_rate_percent > INFLATION_BUY_THRESHOLD
            and p.hedge_percent < INFLATION_BUY_MAX_HEDGE
        ),
        explain=_inflation_hedge,
    ),
    FallbackRule(
        name="take_profit",
        action=SignalAction.SELL_HEDGE,
        confidence_low=65,
        confidence_high=80,
        target_allocation=Decimal("45"),
        risk_level=RiskLevel.MEDIUM,
        suggested_percent=Decimal("20"),
        matches=lambda m, p: (
            m.change_24h_percent > RALLY_SELL_THRESHOLD
            and p.hedge_percent > RALLY_SELL_MIN_HEDGE
        ),
        explain=_take_profit,
    ),
    FallbackRule(
        name="buy_the_dip",
        action=SignalAction.BUY_HEDGE,
        confidence_low=68,
        confidence_high=80,
        target_allocation=Decimal("50"),
        risk_level=RiskLevel.MEDIUM,
        suggested_percent=Decimal("15"),
        matches=lambda m, p: (
            m.change_24h_percent < DIP_BUY_THRESHOLD
            and p.hedge_percent < DIP_BUY_MAX_HEDGE
        ),
        explain=_buy_the_dip,
    ),
    FallbackRule(
        name="hold",
        action=SignalAction.HOLD,
        confidence_low=55,
        confidence_high=80,
        # None keeps the current allocation
        target_allocation=None,
        risk_level=RiskLevel.LOW,
        suggested_percent=Decimal("0"),
        matches=lambda m, p: True,
        explain=_stay_put,
    ),
)


def select_rule(market: MarketSnapshot, portfolio: PortfolioSnapshot) -> FallbackRule:
    """Return the first decision-table rule matching the snapshot."""
    for rule in DECISION_TABLE:
        if rule.matches(market, portfolio):
            return rule
    # the last rule always matches
    return DECISION_TABLE[-1]


def jittered_confidence(
    rule: FallbackRule, tolerance: RiskTolerance, rng: random.Random
) -> int:
    """Draw a confidence inside the rule's band and scale it for the tolerance.

    The result is capped at 95: rule-based output never claims certainty.
    """
    span = rule.confidence_high - rule.confidence_low
    base = Decimal(rule.confidence_low) + Decimal(str(rng.random())) * span
    scaled = min(MAX_FALLBACK_CONFIDENCE, base * confidence_multiplier(tolerance))
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def fallback_signal(
    market: MarketSnapshot,
    portfolio: PortfolioSnapshot,
    tolerance: RiskTolerance,
    *,
    rng: random.Random,
    now: datetime,
    ttl: timedelta,
) -> TradingSignal:
    """Build a rule-based signal for the given snapshot.

    Args:
        market: Current market indicators.
        portfolio: Caller's holdings.
        tolerance: Caller's risk tolerance.
        rng: Source of confidence jitter.
        now: Creation timestamp.
        ttl: Validity window of the signal.

    Returns:
        A TradingSignal with ``source`` set to FALLBACK.
    """
    rule = select_rule(market, portfolio)
    suggested_percent = cap_trade_percent(rule.suggested_percent, tolerance)
    available = portfolio.available_funds(rule.action, market.price)
    target = (
        rule.target_allocation
        if rule.target_allocation is not None
        else portfolio.hedge_percent
    )

    return TradingSignal(
        action=rule.action,
        confidence=jittered_confidence(rule, tolerance, rng),
        reasoning=rule.explain(market, portfolio),
        suggested_amount=round_cents(available * suggested_percent / HUNDRED),
        suggested_percent=suggested_percent,
        target_hedge_allocation=target,
        risk_level=rule.risk_level,
        reference_price=market.price,
        created_at=now,
        expires_at=now + ttl,
        source=SignalSource.FALLBACK,
    )
