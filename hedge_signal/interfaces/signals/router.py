"""
FastAPI router for the signals bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from hedge_signal.application.signals.dtos import GetSignalCommand, SignalResult
from hedge_signal.application.signals.get_preview import GetSignalPreviewUseCase
from hedge_signal.application.signals.get_signal import GetSignalUseCase
from hedge_signal.core.config import settings
from hedge_signal.interfaces.signals.dependencies import (
    get_signal_preview_use_case,
    get_signal_use_case,
)
from hedge_signal.interfaces.signals.schemas import (
    ErrorResponse,
    MarketSnapshotSchema,
    PaymentRequiredResponse,
    RiskPolicySchema,
    SignalPreviewResponse,
    SignalRequest,
    SignalResponse,
    TradingSignalSchema,
)
from hedge_signal.shared.security.rate_limiting import limiter

RECEIPT_HEADER = "X-402-Receipt"

router = APIRouter(prefix="/signals", tags=["signals"])


def _to_response(result: SignalResult, risk_tolerance: str) -> SignalResponse:
    signal = result.signal
    market = result.market
    return SignalResponse(
        signal=TradingSignalSchema(
            id=signal.signal_id,
            action=signal.action.value,
            confidence=signal.confidence,
            reasoning=signal.reasoning,
            suggested_amount=signal.suggested_amount,
            suggested_percent=signal.suggested_percent,
            target_hedge_allocation=signal.target_hedge_allocation,
            risk_level=signal.risk_level.value,
            reference_price=signal.reference_price,
            created_at=signal.created_at,
            expires_at=signal.expires_at,
        ),
        market_snapshot=MarketSnapshotSchema(
            price=market.price,
            change_24h_percent=market.change_24h_percent,
            inflation_rate_percent=market.inflation_rate_percent,
            usd_strength_index=market.usd_strength_index,
            sentiment=market.sentiment.value,
            observed_at=market.observed_at,
        ),
        paid=result.paid,
        cached=result.cached,
        actionable=result.actionable,
        risk_policy=RiskPolicySchema(
            risk_tolerance=risk_tolerance,
            min_confidence=result.threshold.min_confidence,
            max_trade_percent=result.threshold.max_trade_percent,
        ),
    )


@router.post(
    "",
    response_model=SignalResponse,
    responses={
        400: {"model": ErrorResponse},
        402: {"model": PaymentRequiredResponse},
    },
    summary="Get a paid trading signal",
    description=(
        "Returns a confidence-scored hedge recommendation. Requires a payment "
        "receipt in the X-402-Receipt header (or the paymentProof field); "
        "without one the response is 402 with payment instructions."
    ),
)
@limiter.limit(settings.rate_limit_signal)
async def get_signal(
    request: Request,
    body: SignalRequest,
    receipt: Optional[str] = Header(default=None, alias=RECEIPT_HEADER),
    use_case: GetSignalUseCase = Depends(get_signal_use_case),
) -> SignalResponse:
    """Release a trading signal once payment is verified."""
    if receipt is None and body.payment_proof is not None:
        receipt = json.dumps(body.payment_proof)
    command = GetSignalCommand(
        portfolio_value=body.portfolio_value,
        hedge_percent=body.hedge_percent,
        risk_tolerance=body.risk_tolerance,
        user_address=body.user_address,
        receipt=receipt,
    )
    result = await use_case.execute(command)
    return _to_response(result, body.risk_tolerance.strip().lower())


@router.get(
    "/preview",
    response_model=SignalPreviewResponse,
    summary="Preview the paid signal",
    description="Free teaser with the signal price and current hedge asset price.",
)
def get_signal_preview(
    use_case: GetSignalPreviewUseCase = Depends(get_signal_preview_use_case),
) -> SignalPreviewResponse:
    """Return the price of a signal without revealing it."""
    result = use_case.execute()
    return SignalPreviewResponse(
        message="Pay to unlock the full AI trading signal",
        price=result.requirement.price,
        currency=result.requirement.currency,
        pay_to=result.requirement.pay_to,
        hedge_price=result.price,
        change_24h_percent=result.change_24h_percent,
    )
