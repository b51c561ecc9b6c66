"""
Parsing of recommendation model output.

The model's reply is an untrusted document: it may wrap the JSON in
prose or code fences, drift slightly out of range, or omit fields.
Parsing yields a tagged result, ``Parsed`` or ``Rejected``, instead of
raising, so the engine can decide how to degrade.

Rules:
    - the first top-level JSON object in the text is used
    - missing or non-numeric fields, unknown actions or risk levels reject
    - numbers outside their domain are clamped, not rejected
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
)

from hedge_signal.domain.signals.entities import (
    HUNDRED,
    ZERO,
    MarketSnapshot,
    PortfolioSnapshot,
    RiskLevel,
    RiskTolerance,
    SignalAction,
    SignalSource,
    TradingSignal,
    clamp,
    round_cents,
)
from hedge_signal.domain.signals.risk_policy import cap_trade_percent

ACTION_ALIASES = {
    "BUY_HEDGE": SignalAction.BUY_HEDGE,
    "BUY_GOLD": SignalAction.BUY_HEDGE,
    "BUY": SignalAction.BUY_HEDGE,
    "SELL_HEDGE": SignalAction.SELL_HEDGE,
    "SELL_GOLD": SignalAction.SELL_HEDGE,
    "SELL": SignalAction.SELL_HEDGE,
    "HOLD": SignalAction.HOLD,
}


class ModelSignalPayload(BaseModel):
    """Schema of the JSON object the model is asked to return."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    action: SignalAction
    confidence: int
    reasoning: str = Field(..., min_length=1)
    suggested_percentage: Decimal = Field(
        ..., alias="suggestedPercentage", allow_inf_nan=False
    )
    target_hedge_allocation: Decimal = Field(
        ...,
        validation_alias=AliasChoices(
            "targetHedgeAllocation", "targetGoldAllocation", "targetAllocation"
        ),
        allow_inf_nan=False,
    )
    risk_level: RiskLevel = Field(..., alias="riskLevel")

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, value: Any) -> SignalAction:
        if isinstance(value, str):
            action = ACTION_ALIASES.get(value.strip().upper())
            if action is not None:
                return action
        raise ValueError(f"unknown action {value!r}")

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError("confidence must be numeric")
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError("confidence must be numeric") from exc
        if not number.is_finite():
            raise ValueError("confidence must be finite")
        number = clamp(number).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return int(number)

    @field_validator("reasoning", mode="before")
    @classmethod
    def _strip_reasoning(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("suggested_percentage", "target_hedge_allocation", mode="after")
    @classmethod
    def _clamp_percent(cls, value: Decimal) -> Decimal:
        return clamp(value)

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


@dataclass(frozen=True)
class Parsed:
    """Model output accepted as a signal payload."""

    payload: ModelSignalPayload


@dataclass(frozen=True)
class Rejected:
    """Model output that could not be turned into a signal."""

    reason: str


ParseResult = Union[Parsed, Rejected]


def extract_first_json_object(text: str) -> Optional[dict]:
    """Return the first top-level JSON object embedded in ``text``.

    Braces inside string literals are ignored. A candidate that is never
    closed or fails to decode is skipped and the search resumes after its
    opening brace.
    """
    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        candidate = None
        if end is not None:
            try:
                candidate = json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                pass
        if isinstance(candidate, dict):
            return candidate
        start = text.find("{", start + 1)
    return None


def _matching_brace(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def parse_model_output(raw: str) -> ParseResult:
    """Parse raw model text into a tagged result."""
    if not raw or not raw.strip():
        return Rejected("empty response")

    document = extract_first_json_object(raw)
    if document is None:
        return Rejected("no JSON object found")

    try:
        payload = ModelSignalPayload.model_validate(document)
    except PydanticValidationError as exc:
        fields = sorted(
            {".".join(str(part) for part in error["loc"]) for error in exc.errors()}
        )
        return Rejected("invalid fields: " + ", ".join(fields))
    return Parsed(payload)


def signal_from_payload(
    payload: ModelSignalPayload,
    market: MarketSnapshot,
    portfolio: PortfolioSnapshot,
    tolerance: RiskTolerance,
    *,
    now: datetime,
    ttl: timedelta,
) -> TradingSignal:
    """Turn a validated payload into a TradingSignal.

    The suggested percent is capped by the tolerance's sizing ceiling,
    and zeroed for HOLD, so the suggested amount never exceeds the
    funds available for the action.
    """
    if payload.action is SignalAction.HOLD:
        suggested_percent = ZERO
    else:
        suggested_percent = cap_trade_percent(payload.suggested_percentage, tolerance)
    available = portfolio.available_funds(payload.action, market.price)

    return TradingSignal(
        action=payload.action,
        confidence=payload.confidence,
        reasoning=payload.reasoning,
        suggested_amount=round_cents(available * suggested_percent / HUNDRED),
        suggested_percent=suggested_percent,
        target_hedge_allocation=payload.target_hedge_allocation,
        risk_level=payload.risk_level,
        reference_price=market.price,
        created_at=now,
        expires_at=now + ttl,
        source=SignalSource.MODEL,
    )
