"""
Payment gate in front of paid signals.

Runs the per-request state machine:

    UNVERIFIED -> (proof present?) -> VERIFYING -> VERIFIED | REJECTED

A missing proof ends in PAYMENT_REQUIRED. The bypass flag is the only
way to skip verification and is decided once, from configuration.

With single-use tracking on, a proof is reserved before the (possibly
slow) on-chain confirmation, so two concurrent requests cannot both
spend it. The caller settles the reservation once the signal has been
produced, or releases it so the client can retry.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from hedge_signal.domain.signals.errors import (
    InvalidReceiptError,
    PaymentRequiredError,
    ReceiptAlreadyUsedError,
    SignalDomainError,
)
from hedge_signal.domain.signals.payment import (
    PaymentDecision,
    PaymentProof,
    PaymentRequirement,
    PaymentState,
    check_proof,
    normalize_address,
)
from hedge_signal.domain.signals.ports import KeyValueStore, PaymentVerifierPort
from hedge_signal.shared.logging import short_ref

logger = logging.getLogger(__name__)

USED_PROOF_PREFIX = "receipt:"
PENDING = "pending"


class UsedProofRegistry:
    """Remembers transaction references that already released a signal."""

    def __init__(self, store: KeyValueStore, ttl: timedelta) -> None:
        self._store = store
        self._ttl = ttl

    @staticmethod
    def _key(proof: PaymentProof) -> str:
        return USED_PROOF_PREFIX + normalize_address(proof.tx_reference)

    def is_used(self, proof: PaymentProof) -> bool:
        return self._store.get(self._key(proof)) is not None

    def reserve(self, proof: PaymentProof) -> bool:
        """Claim the proof for one request. False if it is taken."""
        return self._store.put_if_absent(self._key(proof), PENDING, self._ttl)

    def release(self, proof: PaymentProof) -> None:
        self._store.delete(self._key(proof))

    def mark_used(self, proof: PaymentProof) -> None:
        self._store.put(self._key(proof), proof.payer_address, self._ttl)


@dataclass(frozen=True)
class PaymentGateConfig:
    """Static configuration of the gate.

    Attributes:
        required_amount: Price per signal in token minor units.
        payee_address: Receiving address; None disables the destination check.
        bypass: When True every request is treated as verified.
    """

    required_amount: int
    payee_address: Optional[str]
    bypass: bool = False


class PaymentGate:
    """Validates payment proofs before a paid signal is released.

    Args:
        config: Price, payee and bypass flag.
        requirement: Descriptor returned with payment-required responses.
        verifier: Optional on-chain confirmation of the referenced transaction.
        registry: Optional single-use tracking of accepted proofs.
    """

    def __init__(
        self,
        config: PaymentGateConfig,
        requirement: PaymentRequirement,
        verifier: Optional[PaymentVerifierPort] = None,
        registry: Optional[UsedProofRegistry] = None,
    ) -> None:
        self._config = config
        self._requirement = requirement
        self._verifier = verifier
        self._registry = registry

    @property
    def requirement(self) -> PaymentRequirement:
        return self._requirement

    @property
    def bypassed(self) -> bool:
        return self._config.bypass

    async def verify(self, raw_receipt: Optional[str]) -> PaymentDecision:
        """Run the gate for one request.

        A verified proof stays reserved until :meth:`settle` or
        :meth:`release` is called for the returned decision.

        Args:
            raw_receipt: The JSON receipt header, or None if absent.

        Returns:
            A VERIFIED decision.

        Raises:
            PaymentRequiredError: If no receipt was supplied.
            InvalidReceiptError: If the receipt is malformed, unconfirmed or reused.
            InsufficientPaymentError: If the amount is below the price.
            WrongDestinationError: If the payee does not match.
        """
        if self._config.bypass:
            logger.debug("Payment gate bypassed by configuration")
            return PaymentDecision(
                state=PaymentState.VERIFIED,
                bypassed=True,
                history=(PaymentState.UNVERIFIED, PaymentState.VERIFIED),
            )

        if raw_receipt is None or not raw_receipt.strip():
            logger.info("Payment required: no receipt supplied")
            raise PaymentRequiredError(self._requirement)

        try:
            proof = PaymentProof.from_header(raw_receipt)
            await self._check(proof)
        except SignalDomainError as exc:
            logger.warning("Payment rejected (%s): %s", exc.code, exc.message)
            raise

        logger.info(
            "Payment verified: tx=%s payer=%s amount=%d",
            short_ref(proof.tx_reference),
            short_ref(proof.payer_address),
            proof.amount,
        )
        return PaymentDecision(
            state=PaymentState.VERIFIED,
            proof=proof,
            history=(
                PaymentState.UNVERIFIED,
                PaymentState.VERIFYING,
                PaymentState.VERIFIED,
            ),
        )

    def settle(self, decision: PaymentDecision) -> None:
        """Record the decision's proof as spent."""
        if self._registry is not None and decision.proof is not None:
            self._registry.mark_used(decision.proof)

    def release(self, decision: PaymentDecision) -> None:
        """Give the decision's proof back after a failed request."""
        if self._registry is not None and decision.proof is not None:
            self._registry.release(decision.proof)
            logger.info(
                "Payment released: tx=%s", short_ref(decision.proof.tx_reference)
            )

    async def _check(self, proof: PaymentProof) -> None:
        check_proof(proof, self._config.required_amount, self._config.payee_address)

        if self._registry is not None and not self._registry.reserve(proof):
            raise ReceiptAlreadyUsedError(short_ref(proof.tx_reference))

        try:
            if self._verifier is not None and not await self._verifier.confirm(proof):
                raise InvalidReceiptError("transaction not confirmed")
        except BaseException:
            if self._registry is not None:
                self._registry.release(proof)
            raise
