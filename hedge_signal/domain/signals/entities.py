"""
Domain entities for the signals bounded context.

Entities represent core business objects of the trading signal service.
They contain no framework imports and no IO operations.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_DOWN, Decimal, localcontext
from enum import Enum
from typing import Optional
from uuid import uuid4

from hedge_signal.domain.signals.errors import ValidationError

HUNDRED = Decimal("100")
ZERO = Decimal("0")
CENT = Decimal("0.01")
# cent amounts up to this value fit the default 28-digit precision
MAX_PORTFOLIO_VALUE = Decimal("1000000000000000")


def to_decimal(value: object) -> Decimal:
    """Convert an int, float, str or Decimal into a Decimal.

    Floats go through ``str`` so that 0.1 stays 0.1.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)  # type: ignore[arg-type]


def clamp(value: Decimal, low: Decimal = ZERO, high: Decimal = HUNDRED) -> Decimal:
    """Clamp a decimal into ``[low, high]``."""
    return max(low, min(high, value))


def round_cents(value: Decimal) -> Decimal:
    """Truncate a monetary amount to whole cents, never rounding up."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(CENT, rounding=ROUND_DOWN)


class MarketSentiment(str, Enum):
    """Overall market mood label."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class RiskTolerance(str, Enum):
    """Investor risk tolerance selected per request."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"

    @classmethod
    def parse(cls, value: object) -> "RiskTolerance":
        """Return the tolerance for ``value``.

        Raises:
            ValidationError: If the value is not a known tolerance.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        raise ValidationError(
            "riskTolerance",
            f"unknown value {value!r}; expected one of "
            + ", ".join(member.value for member in cls),
        )


class SignalAction(str, Enum):
    """Trading action recommended by a signal."""

    BUY_HEDGE = "BUY_HEDGE"
    SELL_HEDGE = "SELL_HEDGE"
    HOLD = "HOLD"


class RiskLevel(str, Enum):
    """Risk level attached to a recommendation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SignalSource(str, Enum):
    """Which path produced a signal. Internal only."""

    MODEL = "model"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class MarketSnapshot:
    """Current market indicators for the hedge asset.

    Attributes:
        price: Hedge asset spot price in USD.
        change_24h_percent: Price change over the last 24 hours, in percent.
        inflation_rate_percent: Inflation proxy, in percent.
        usd_strength_index: USD strength proxy (DXY-like).
        sentiment: Market sentiment label.
        observed_at: When the snapshot was produced.
    """

    price: Decimal
    change_24h_percent: Decimal
    inflation_rate_percent: Decimal
    usd_strength_index: Decimal
    sentiment: MarketSentiment
    observed_at: Optional[datetime] = None


@dataclass(frozen=True)
class PortfolioSnapshot:
    """The caller's holdings at request time.

    Attributes:
        total_value: Total portfolio value in USD.
        stable_amount: Stable-asset balance in USD.
        hedge_asset_amount: Hedge asset quantity (e.g. ounces).
        hedge_percent: Share of the portfolio held in the hedge asset.
    """

    total_value: Decimal
    stable_amount: Decimal
    hedge_asset_amount: Decimal
    hedge_percent: Decimal

    def __post_init__(self) -> None:
        for name in ("total_value", "stable_amount", "hedge_asset_amount"):
            if getattr(self, name) < ZERO:
                raise ValidationError(name, "must be non-negative")
        if not (ZERO <= self.hedge_percent <= HUNDRED):
            raise ValidationError("hedge_percent", "must be between 0 and 100")

    @classmethod
    def from_allocation(
        cls, total_value: Decimal, hedge_percent: Decimal, hedge_price: Decimal
    ) -> "PortfolioSnapshot":
        """Derive holdings from a total value and a hedge allocation.

        Args:
            total_value: Total portfolio value in USD.
            hedge_percent: Share held in the hedge asset (0-100).
            hedge_price: Current hedge asset price used to convert to units.

        Raises:
            ValidationError: If any input is out of range.
        """
        total_value = to_decimal(total_value)
        hedge_percent = to_decimal(hedge_percent)
        hedge_price = to_decimal(hedge_price)
        if total_value < ZERO:
            raise ValidationError("portfolioValue", "must be non-negative")
        if not (ZERO <= hedge_percent <= HUNDRED):
            raise ValidationError("hedgePercent", "must be between 0 and 100")
        if hedge_price <= ZERO:
            raise ValidationError("price", "must be positive")

        hedge_value = total_value * hedge_percent / HUNDRED
        return cls(
            total_value=total_value,
            stable_amount=total_value - hedge_value,
            hedge_asset_amount=hedge_value / hedge_price,
            hedge_percent=hedge_percent,
        )

    def hedge_value(self, price: Decimal) -> Decimal:
        """Return the USD value of the hedge asset holding."""
        return self.hedge_asset_amount * price

    def available_funds(self, action: SignalAction, price: Decimal) -> Decimal:
        """Return the funds a given action may draw on.

        Stable balance for buys, hedge holding value for sells,
        nothing for HOLD.
        """
        if action is SignalAction.BUY_HEDGE:
            return self.stable_amount
        if action is SignalAction.SELL_HEDGE:
            return self.hedge_value(price)
        return ZERO


@dataclass(frozen=True)
class RiskThreshold:
    """Confidence floor and position-sizing ceiling for a risk tolerance."""

    min_confidence: int
    max_trade_percent: int


@dataclass(frozen=True)
class TradingSignal:
    """A confidence-scored trading recommendation.

    Created fresh per computation and never mutated afterwards.
    """

    action: SignalAction
    confidence: int
    reasoning: str
    suggested_amount: Decimal
    suggested_percent: Decimal
    target_hedge_allocation: Decimal
    risk_level: RiskLevel
    reference_price: Decimal
    created_at: datetime
    expires_at: datetime
    source: SignalSource = SignalSource.FALLBACK
    signal_id: str = ""

    def __post_init__(self) -> None:
        if not self.signal_id:
            object.__setattr__(self, "signal_id", f"sig_{uuid4().hex}")
        if not (0 <= self.confidence <= 100):
            raise ValueError(f"confidence out of range: {self.confidence}")
        if self.suggested_amount < ZERO:
            raise ValueError(f"negative suggested amount: {self.suggested_amount}")
        for name in ("suggested_percent", "target_hedge_allocation"):
            value = getattr(self, name)
            if not (ZERO <= value <= HUNDRED):
                raise ValueError(f"{name} out of range: {value}")
        if self.expires_at < self.created_at:
            raise ValueError("expires_at precedes created_at")

    def is_actionable(self, threshold: RiskThreshold) -> bool:
        """Return True if a trader with this threshold would act on the signal."""
        return (
            self.action is not SignalAction.HOLD
            and self.confidence >= threshold.min_confidence
        )


@dataclass(frozen=True)
class CacheEntry:
    """A cached signal with its absolute expiry time."""

    key: str
    signal: TradingSignal
    expires_at: datetime
    market: Optional[MarketSnapshot] = None
