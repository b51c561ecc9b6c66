"""
Recommendation engine.

Produces a TradingSignal from market, portfolio and risk tolerance.
Tries the recommendation model first, bounded by a timeout, and
degrades to the rule-based decision table on any failure. It never
raises to its caller: a response is always produced.

Whether a signal came from the model or the fallback is visible only
in logs and in the internal ``source`` field, never in the API.
"""

import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import Callable, Optional

from hedge_signal.application.signals.model_output import (
    Rejected,
    parse_model_output,
    signal_from_payload,
)
from hedge_signal.application.signals.signal_cache import DEFAULT_SIGNAL_TTL
from hedge_signal.domain.signals.entities import (
    MarketSnapshot,
    PortfolioSnapshot,
    RiskTolerance,
    TradingSignal,
)
from hedge_signal.domain.signals.errors import (
    ModelResponseInvalidError,
    ModelUnavailableError,
)
from hedge_signal.domain.signals.fallback import fallback_signal
from hedge_signal.domain.signals.ports import RecommendationModelPort
from hedge_signal.domain.signals.prompt import build_prompt
from hedge_signal.shared.clock import utc_now

logger = logging.getLogger(__name__)

DEFAULT_MODEL_TIMEOUT_SECONDS = 10.0


class RecommendationEngine:
    """Model-first signal generator with a deterministic fallback.

    Args:
        model: Recommendation model port, or None to always use rules.
        timeout_seconds: Upper bound on one model round trip.
        signal_ttl: Validity window stamped on produced signals.
        rng: Source of fallback confidence jitter.
        clock: Source of creation timestamps.
    """

    def __init__(
        self,
        model: Optional[RecommendationModelPort] = None,
        timeout_seconds: float = DEFAULT_MODEL_TIMEOUT_SECONDS,
        signal_ttl: timedelta = DEFAULT_SIGNAL_TTL,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._model = model
        self._timeout = timeout_seconds
        self._ttl = signal_ttl
        self._rng = rng or random.Random()
        self._clock = clock
        self.fallback_count = 0

    @property
    def model_enabled(self) -> bool:
        return self._model is not None and self._model.is_configured

    async def generate_signal(
        self,
        market: MarketSnapshot,
        portfolio: PortfolioSnapshot,
        tolerance: RiskTolerance,
    ) -> TradingSignal:
        """Return a signal for the snapshot. Never raises.

        Args:
            market: Current market indicators.
            portfolio: Caller's holdings.
            tolerance: Caller's risk tolerance (already validated).

        Returns:
            A model-backed signal, or a rule-based one if the model
            path failed for any reason.
        """
        try:
            return await self._model_signal(market, portfolio, tolerance)
        except (ModelUnavailableError, ModelResponseInvalidError) as exc:
            logger.warning("Falling back to rule-based signal: %s", exc.message)
        except Exception:
            logger.exception("Unexpected error on model path, using rule-based signal")

        self.fallback_count += 1
        return fallback_signal(
            market,
            portfolio,
            tolerance,
            rng=self._rng,
            now=self._clock(),
            ttl=self._ttl,
        )

    async def _model_signal(
        self,
        market: MarketSnapshot,
        portfolio: PortfolioSnapshot,
        tolerance: RiskTolerance,
    ) -> TradingSignal:
        if not self.model_enabled:
            raise ModelUnavailableError("model not configured")

        prompt = build_prompt(market, portfolio, tolerance)
        try:
            raw = await asyncio.wait_for(self._model.complete(prompt), self._timeout)
        except asyncio.TimeoutError as exc:
            raise ModelUnavailableError(
                f"no reply within {self._timeout:.1f}s"
            ) from exc

        result = parse_model_output(raw)
        if isinstance(result, Rejected):
            raise ModelResponseInvalidError(result.reason)

        signal = signal_from_payload(
            result.payload,
            market,
            portfolio,
            tolerance,
            now=self._clock(),
            ttl=self._ttl,
        )
        logger.info(
            "Model signal %s: action=%s confidence=%d",
            signal.signal_id,
            signal.action.value,
            signal.confidence,
        )
        return signal
