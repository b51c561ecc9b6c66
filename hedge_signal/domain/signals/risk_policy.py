"""
Risk policy: maps a risk tolerance to its confidence and sizing limits.

Pure functions over a fixed lookup table. Unknown tolerances are
rejected rather than defaulted, since a silent default would
misrepresent the caller's risk posture.
"""

from decimal import Decimal

from hedge_signal.domain.signals.entities import (
    RiskThreshold,
    RiskTolerance,
    ZERO,
    to_decimal,
)

RISK_THRESHOLDS: dict[RiskTolerance, RiskThreshold] = {
    RiskTolerance.CONSERVATIVE: RiskThreshold(min_confidence=80, max_trade_percent=20),
    RiskTolerance.MODERATE: RiskThreshold(min_confidence=60, max_trade_percent=40),
    RiskTolerance.AGGRESSIVE: RiskThreshold(min_confidence=50, max_trade_percent=60),
}

CONFIDENCE_MULTIPLIERS: dict[RiskTolerance, Decimal] = {
    RiskTolerance.CONSERVATIVE: Decimal("0.9"),
    RiskTolerance.MODERATE: Decimal("1.0"),
    RiskTolerance.AGGRESSIVE: Decimal("1.1"),
}

TOLERANCE_GUIDANCE: dict[RiskTolerance, str] = {
    RiskTolerance.CONSERVATIVE: "Only suggest trades with very high conviction",
    RiskTolerance.MODERATE: "Balance conviction with opportunity",
    RiskTolerance.AGGRESSIVE: "Be willing to make opportunistic trades",
}


def threshold_for(tolerance: object) -> RiskThreshold:
    """Return the confidence floor and sizing ceiling for a tolerance.

    Args:
        tolerance: A RiskTolerance or its string value.

    Raises:
        ValidationError: If the tolerance is unknown.
    """
    return RISK_THRESHOLDS[RiskTolerance.parse(tolerance)]


def confidence_multiplier(tolerance: object) -> Decimal:
    """Return the factor applied to rule-based confidence for a tolerance."""
    return CONFIDENCE_MULTIPLIERS[RiskTolerance.parse(tolerance)]


def guidance_for(tolerance: object) -> str:
    """Return the prompt guidance sentence for a tolerance."""
    return TOLERANCE_GUIDANCE[RiskTolerance.parse(tolerance)]


def cap_trade_percent(percent: Decimal, tolerance: object) -> Decimal:
    """Limit a suggested trade percent to the tolerance's sizing ceiling."""
    ceiling = to_decimal(threshold_for(tolerance).max_trade_percent)
    return max(ZERO, min(to_decimal(percent), ceiling))
