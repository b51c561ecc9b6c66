"""
Payment proof model and verification rules.

A payment proof (receipt) accompanies a request for a paid signal.
It is validated structurally, then against the required amount and
the configured payee. The rules here are pure; on-chain confirmation
and replay tracking are orchestrated by the application layer.
"""

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from hedge_signal.domain.signals.errors import (
    InsufficientPaymentError,
    InvalidReceiptError,
    WrongDestinationError,
)

# canonical field -> accepted wire names, first match wins
PROOF_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "tx_reference": ("txReference", "transactionHash", "txHash"),
    "payer_address": ("payerAddress", "from"),
    "payee_address": ("payeeAddress", "to"),
    "amount": ("amount",),
    "token_reference": ("tokenReference", "token"),
    "timestamp": ("timestamp",),
}
REQUIRED_PROOF_FIELDS = ("tx_reference", "payer_address", "payee_address", "amount")


class PaymentState(str, Enum):
    """States of the per-request payment state machine."""

    UNVERIFIED = "unverified"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    REJECTED = "rejected"
    PAYMENT_REQUIRED = "payment_required"


def normalize_address(address: str) -> str:
    """Return an address in the form used for comparisons."""
    return address.strip().lower()


def _pick(document: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        if name in document and document[name] not in (None, ""):
            return document[name]
    return None


def _parse_amount(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidReceiptError("amount must be an integer")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and value.strip().isdigit():
        amount = int(value.strip())
    else:
        raise InvalidReceiptError("amount must be a non-negative integer")
    if amount < 0:
        raise InvalidReceiptError("amount must be a non-negative integer")
    return amount


def _refuse_constant(name: str) -> Any:
    raise InvalidReceiptError(f"{name} is not a valid receipt value")


@dataclass(frozen=True)
class PaymentProof:
    """Caller-supplied evidence of a micropayment.

    Attributes:
        tx_reference: Transaction hash of the transfer.
        payer_address: Address the payment was sent from.
        amount: Paid amount in token minor units.
        payee_address: Address the payment was sent to.
        token_reference: Token contract address.
        timestamp: Client-side payment time in epoch milliseconds.
    """

    tx_reference: str
    payer_address: str
    amount: int
    payee_address: str
    token_reference: str = ""
    timestamp: Optional[int] = None

    @classmethod
    def from_mapping(cls, document: Any) -> "PaymentProof":
        """Build a proof from a decoded receipt document.

        Raises:
            InvalidReceiptError: If the document is malformed.
        """
        if not isinstance(document, Mapping):
            raise InvalidReceiptError("receipt must be a JSON object")

        values = {
            name: _pick(document, aliases)
            for name, aliases in PROOF_FIELD_ALIASES.items()
        }
        missing = [name for name in REQUIRED_PROOF_FIELDS if values[name] is None]
        if missing:
            raise InvalidReceiptError("missing fields: " + ", ".join(missing))

        for name in ("tx_reference", "payer_address", "payee_address"):
            if not isinstance(values[name], str):
                raise InvalidReceiptError(f"{name} must be a string")

        timestamp = values["timestamp"]
        if timestamp is not None:
            if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
                raise InvalidReceiptError("timestamp must be a number")
            if isinstance(timestamp, float) and not math.isfinite(timestamp):
                raise InvalidReceiptError("timestamp must be finite")
            timestamp = int(timestamp)

        token = values["token_reference"]
        return cls(
            tx_reference=values["tx_reference"].strip(),
            payer_address=values["payer_address"].strip(),
            amount=_parse_amount(values["amount"]),
            payee_address=values["payee_address"].strip(),
            token_reference=str(token).strip() if token is not None else "",
            timestamp=timestamp,
        )

    @classmethod
    def from_header(cls, raw: str) -> "PaymentProof":
        """Decode a JSON receipt header into a proof.

        Raises:
            InvalidReceiptError: If the header is not valid JSON or is malformed.
        """
        try:
            document = json.loads(raw, parse_constant=_refuse_constant)
        except (TypeError, ValueError) as exc:
            raise InvalidReceiptError("receipt is not valid JSON") from exc
        return cls.from_mapping(document)


@dataclass(frozen=True)
class PaymentRequirement:
    """Machine-readable description of what to pay for a resource.

    Returned with a payment-required response so clients can pay and retry.
    """

    resource: str
    max_amount_required: int
    token_decimals: int
    currency: str
    network: str
    pay_to: str
    asset: str = ""
    description: str = ""
    scheme: str = "exact"

    @property
    def price(self) -> Decimal:
        """Required amount in major units (e.g. 0.01 USDC)."""
        value = Decimal(self.max_amount_required).scaleb(-self.token_decimals)
        value = value.normalize()
        # normalize() turns 10 into 1E+1
        if value.as_tuple().exponent > 0:
            value = value.quantize(Decimal(1))
        return value

    def to_accepts(self) -> dict[str, list[dict[str, str]]]:
        """Return the ``accepts`` descriptor used in the 402 header."""
        return {
            "accepts": [
                {
                    "scheme": self.scheme,
                    "network": self.network,
                    "maxAmountRequired": str(self.max_amount_required),
                    "resource": self.resource,
                    "description": self.description,
                    "payTo": self.pay_to,
                    "asset": self.asset,
                }
            ]
        }

    def to_descriptor(self) -> dict[str, Any]:
        """Return price, currency, payee and ``accepts`` in one mapping.

        Sent both as the payment-required body and, JSON-encoded, as the
        payment-required header so clients can pay and retry.
        """
        return {
            "price": str(self.price),
            "currency": self.currency,
            "payTo": self.pay_to,
            **self.to_accepts(),
        }


@dataclass(frozen=True)
class PaymentDecision:
    """Outcome of running the payment gate for one request."""

    state: PaymentState
    proof: Optional[PaymentProof] = None
    bypassed: bool = False
    history: tuple[PaymentState, ...] = field(default_factory=tuple)

    @property
    def paid(self) -> bool:
        """True only when a real proof was verified."""
        return self.state is PaymentState.VERIFIED and not self.bypassed


def check_proof(
    proof: PaymentProof, required_amount: int, payee_address: Optional[str]
) -> None:
    """Validate amount and destination of a structurally valid proof.

    Args:
        proof: The decoded payment proof.
        required_amount: Price in token minor units.
        payee_address: Configured receiving address, or None to skip the check.

    Raises:
        InsufficientPaymentError: If the amount is below the price.
        WrongDestinationError: If the payee does not match.
    """
    if proof.amount < required_amount:
        raise InsufficientPaymentError(required=required_amount, paid=proof.amount)
    if payee_address and normalize_address(proof.payee_address) != normalize_address(
        payee_address
    ):
        raise WrongDestinationError(expected=payee_address, actual=proof.payee_address)
