"""
Adapters: Payment confirmation.

Implement PaymentVerifierPort. The optimistic verifier accepts every
well-formed proof; the RPC verifier asks an EVM node for the
transaction receipt and requires a successful status.
"""

import logging
from typing import Optional

import httpx

from hedge_signal.domain.signals.payment import PaymentProof, normalize_address
from hedge_signal.domain.signals.ports import PaymentVerifierPort
from hedge_signal.shared.logging import short_ref

logger = logging.getLogger(__name__)

RECEIPT_SUCCESS = "0x1"


class OptimisticPaymentVerifier(PaymentVerifierPort):
    """Trusts the proof's fields without contacting the chain."""

    async def confirm(self, proof: PaymentProof) -> bool:
        return True


class RpcPaymentVerifier(PaymentVerifierPort):
    """Confirms proofs with ``eth_getTransactionReceipt``.

    A proof is confirmed when the node knows the transaction, its status
    is success and, where the node reports one, the sender matches the
    proof's payer. Any RPC failure counts as unconfirmed.

    Args:
        rpc_url: JSON-RPC endpoint of the payment network.
        timeout_seconds: HTTP timeout per call.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._timeout = timeout_seconds
        self._transport = transport

    async def confirm(self, proof: PaymentProof) -> bool:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_getTransactionReceipt",
            "params": [proof.tx_reference],
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(self._rpc_url, json=payload)
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(
                "Receipt lookup for %s failed: %s",
                short_ref(proof.tx_reference),
                exc,
            )
            return False

        receipt = body.get("result") if isinstance(body, dict) else None
        if not isinstance(receipt, dict):
            logger.info("Transaction %s not found", short_ref(proof.tx_reference))
            return False
        if receipt.get("status") != RECEIPT_SUCCESS:
            logger.info("Transaction %s failed on chain", short_ref(proof.tx_reference))
            return False

        sender = receipt.get("from")
        if sender and normalize_address(sender) != normalize_address(
            proof.payer_address
        ):
            logger.warning(
                "Transaction %s sent by %s, proof claims %s",
                short_ref(proof.tx_reference),
                short_ref(sender),
                short_ref(proof.payer_address),
            )
            return False
        return True
