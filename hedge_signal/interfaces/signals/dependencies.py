"""
Dependency injection for the signals bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the signals context.

The key-value store, cache, proof registry and engine are built once
per process so that cached signals and used receipts are shared by
all requests. Tests replace them through ``app.dependency_overrides``.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from hedge_signal.application.signals.get_preview import GetSignalPreviewUseCase
from hedge_signal.application.signals.get_signal import GetSignalUseCase
from hedge_signal.application.signals.payment_gate import (
    PaymentGate,
    PaymentGateConfig,
    UsedProofRegistry,
)
from hedge_signal.application.signals.recommendation_engine import (
    RecommendationEngine,
)
from hedge_signal.application.signals.signal_cache import SignalCache
from hedge_signal.core.config import settings
from hedge_signal.domain.signals.payment import PaymentRequirement
from hedge_signal.domain.signals.ports import (
    KeyValueStore,
    LedgerPort,
    MarketDataPort,
    PaymentVerifierPort,
)
from hedge_signal.infrastructure.signals.gemini_model_adapter import (
    GeminiModelAdapter,
)
from hedge_signal.infrastructure.signals.ledger_adapter import (
    InMemoryLedgerAdapter,
    demo_ledger,
)
from hedge_signal.infrastructure.signals.market_data_adapter import (
    SyntheticMarketDataAdapter,
)
from hedge_signal.infrastructure.signals.memory_store import InMemoryKeyValueStore
from hedge_signal.infrastructure.signals.payment_verifier_adapter import (
    OptimisticPaymentVerifier,
    RpcPaymentVerifier,
)

logger = logging.getLogger(__name__)

SIGNAL_RESOURCE = "/api/v1/signals"


@lru_cache
def get_key_value_store() -> KeyValueStore:
    """Return the process-wide key-value store."""
    return InMemoryKeyValueStore()


@lru_cache
def get_signal_cache() -> SignalCache:
    """Return the process-wide signal cache."""
    return SignalCache(
        get_key_value_store(),
        default_ttl=timedelta(seconds=settings.signal_cache_ttl_seconds),
    )


@lru_cache
def get_recommendation_engine() -> RecommendationEngine:
    """Build the engine with the Gemini adapter and the rule-based fallback."""
    model = GeminiModelAdapter(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        api_base=settings.gemini_api_base,
        temperature=settings.model_temperature,
        max_output_tokens=settings.model_max_tokens,
        timeout_seconds=settings.model_timeout_seconds,
    )
    if not model.is_configured:
        logger.warning("GEMINI_API_KEY not set; all signals use the rule-based fallback")
    return RecommendationEngine(
        model=model,
        timeout_seconds=settings.model_timeout_seconds,
        signal_ttl=timedelta(seconds=settings.signal_cache_ttl_seconds),
    )


@lru_cache
def get_market_data_port() -> MarketDataPort:
    """Return the market snapshot provider."""
    return SyntheticMarketDataAdapter(base_price=settings.market_base_price)


@lru_cache
def get_ledger() -> LedgerPort:
    """Return the read-only vault ledger."""
    if settings.ledger_seed_demo:
        logger.info("Ledger seeded with the demo vault")
        return demo_ledger()
    return InMemoryLedgerAdapter()


def get_payment_requirement() -> PaymentRequirement:
    """Build the descriptor returned with payment-required responses."""
    return PaymentRequirement(
        resource=SIGNAL_RESOURCE,
        max_amount_required=settings.signal_price_minor_units,
        token_decimals=settings.payment_token_decimals,
        currency=settings.payment_currency,
        network=settings.payment_network,
        pay_to=settings.payment_address or "",
        asset=settings.payment_token_address,
        description="AI trading signal for the hedge asset",
    )


def _payment_verifier() -> PaymentVerifierPort:
    if settings.payment_verify_onchain:
        return RpcPaymentVerifier(
            settings.payment_rpc_url, timeout_seconds=settings.rpc_timeout_seconds
        )
    return OptimisticPaymentVerifier()


@lru_cache
def get_payment_gate() -> PaymentGate:
    """Build the payment gate from configuration."""
    if settings.payment_bypass:
        logger.warning(
            "PAYMENT_BYPASS is enabled: signals are released without payment"
        )
    elif not settings.payment_address:
        logger.warning("PAYMENT_ADDRESS not set; payment destination is not checked")

    registry: Optional[UsedProofRegistry] = None
    if settings.payment_single_use:
        registry = UsedProofRegistry(
            get_key_value_store(),
            ttl=timedelta(seconds=settings.payment_proof_ttl_seconds),
        )
    return PaymentGate(
        PaymentGateConfig(
            required_amount=settings.signal_price_minor_units,
            payee_address=settings.payment_address,
            bypass=settings.payment_bypass,
        ),
        get_payment_requirement(),
        verifier=_payment_verifier(),
        registry=registry,
    )


def get_signal_use_case() -> GetSignalUseCase:
    """Build GetSignalUseCase with its infrastructure dependencies."""
    return GetSignalUseCase(
        gate=get_payment_gate(),
        cache=get_signal_cache(),
        engine=get_recommendation_engine(),
        market_port=get_market_data_port(),
        ledger=get_ledger(),
    )


def get_signal_preview_use_case() -> GetSignalPreviewUseCase:
    """Build GetSignalPreviewUseCase with its infrastructure dependencies."""
    return GetSignalPreviewUseCase(
        market_port=get_market_data_port(),
        requirement=get_payment_requirement(),
    )
