"""
Pydantic schemas for signal API request/response validation.

These schemas enforce input validation and define the API contract.
JSON field names are camelCase; Python attributes stay snake_case.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hedge_signal.domain.signals.entities import MAX_PORTFOLIO_VALUE

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"


class CamelModel(BaseModel):
    """Base schema that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignalRequest(CamelModel):
    """Request schema for the paid signal endpoint.

    Attributes:
        portfolio_value: Total portfolio value in USD.
        hedge_percent: Current hedge asset allocation (0-100).
        risk_tolerance: conservative, moderate or aggressive.
        user_address: Optional vault address; when known to the ledger its
            balances replace the two numbers above.
        payment_proof: Optional receipt in the body, for clients that
            cannot set the receipt header.
    """

    portfolio_value: Decimal = Field(
        ...,
        ge=0,
        le=MAX_PORTFOLIO_VALUE,
        allow_inf_nan=False,
        description="Total portfolio value in USD",
    )
    hedge_percent: Decimal = Field(
        ...,
        ge=0,
        le=100,
        allow_inf_nan=False,
        description="Current hedge asset allocation in percent",
    )
    risk_tolerance: str = Field(
        ..., min_length=1, max_length=32, description="Investor risk tolerance"
    )
    user_address: Optional[str] = Field(
        default=None, pattern=ADDRESS_PATTERN, description="Vault wallet address"
    )
    payment_proof: Optional[dict[str, Any]] = Field(
        default=None, description="Payment receipt, if not sent as a header"
    )


class TradingSignalSchema(CamelModel):
    """A released trading signal."""

    id: str
    action: str
    confidence: int
    reasoning: str
    suggested_amount: Decimal
    suggested_percent: Decimal
    target_hedge_allocation: Decimal
    risk_level: str
    reference_price: Decimal
    created_at: datetime
    expires_at: datetime


class MarketSnapshotSchema(CamelModel):
    """Market indicators the signal was computed from."""

    price: Decimal
    change_24h_percent: Decimal = Field(..., alias="change24hPercent")
    inflation_rate_percent: Decimal
    usd_strength_index: Decimal
    sentiment: str
    observed_at: Optional[datetime] = None


class RiskPolicySchema(CamelModel):
    """Limits of the caller's risk tolerance."""

    risk_tolerance: str
    min_confidence: int
    max_trade_percent: int


class SignalResponse(CamelModel):
    """Response schema for the paid signal endpoint."""

    signal: TradingSignalSchema
    market_snapshot: MarketSnapshotSchema
    paid: bool
    cached: bool
    actionable: bool
    risk_policy: RiskPolicySchema


class PaymentAcceptSchema(CamelModel):
    """One accepted way of paying for a resource."""

    scheme: str
    network: str
    max_amount_required: str
    resource: str
    description: str
    pay_to: str
    asset: str


class PaymentRequiredResponse(CamelModel):
    """Body of a 402 response; the same descriptor is sent as a header."""

    error: str = "Payment Required"
    code: str = "PAYMENT_REQUIRED"
    price: Decimal
    currency: str
    pay_to: str
    accepts: list[PaymentAcceptSchema]


class SignalPreviewResponse(CamelModel):
    """Free teaser: market headline and price, signal details hidden."""

    action: str = "HIDDEN"
    confidence: str = "HIDDEN"
    message: str
    price: Decimal
    currency: str
    pay_to: str
    hedge_price: Decimal
    change_24h_percent: Decimal = Field(..., alias="change24hPercent")


class HealthResponse(CamelModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    llm_enabled: bool
    payment_bypass: bool


class ErrorResponse(BaseModel):
    """Standard error response returned by all error handlers."""

    error: str
    code: str
    detail: Optional[str] = None
