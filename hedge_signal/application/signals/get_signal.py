"""
Use case: Release a paid trading signal.

Input: GetSignalCommand (portfolio value, hedge percent, tolerance, receipt)
Output: SignalResult
Side effects: marks the receipt as used once a signal is released,
    writes the signal cache.
Failure cases: ValidationError, PaymentRequiredError, InvalidReceiptError,
    InsufficientPaymentError, WrongDestinationError.
"""

import logging
from decimal import Decimal
from typing import Optional

from hedge_signal.application.signals.dtos import GetSignalCommand, SignalResult
from hedge_signal.application.signals.payment_gate import PaymentGate
from hedge_signal.application.signals.recommendation_engine import (
    RecommendationEngine,
)
from hedge_signal.application.signals.signal_cache import (
    SignalCache,
    signal_cache_key,
)
from hedge_signal.domain.signals.entities import (
    HUNDRED,
    MAX_PORTFOLIO_VALUE,
    ZERO,
    MarketSnapshot,
    PortfolioSnapshot,
    RiskTolerance,
    to_decimal,
)
from hedge_signal.domain.signals.errors import ValidationError
from hedge_signal.domain.signals.ports import LedgerPort, MarketDataPort
from hedge_signal.domain.signals.risk_policy import threshold_for
from hedge_signal.shared.logging import short_ref

logger = logging.getLogger(__name__)


class GetSignalUseCase:
    """Orchestrates payment, cache lookup and signal generation.

    Request fields are validated before the payment gate runs so a
    malformed request never consumes a receipt.
    """

    def __init__(
        self,
        gate: PaymentGate,
        cache: SignalCache,
        engine: RecommendationEngine,
        market_port: MarketDataPort,
        ledger: Optional[LedgerPort] = None,
    ) -> None:
        self._gate = gate
        self._cache = cache
        self._engine = engine
        self._market_port = market_port
        self._ledger = ledger

    async def execute(self, command: GetSignalCommand) -> SignalResult:
        """Run the paid signal use case.

        Args:
            command: The signal request with optional payment receipt.

        Returns:
            The released signal with its market snapshot.

        Raises:
            ValidationError: If a request field is invalid.
            PaymentRequiredError: If no receipt was supplied and the gate is active.
            InvalidReceiptError: If the receipt is malformed, unconfirmed or reused.
            InsufficientPaymentError: If the paid amount is below the price.
            WrongDestinationError: If the payment went to another address.
        """
        tolerance = RiskTolerance.parse(command.risk_tolerance)
        portfolio_value = to_decimal(command.portfolio_value)
        hedge_percent = to_decimal(command.hedge_percent)
        _validate_allocation(portfolio_value, hedge_percent)

        decision = await self._gate.verify(command.receipt)
        try:
            result = await self._release_signal(
                command, tolerance, portfolio_value, hedge_percent, decision.paid
            )
        except BaseException:
            self._gate.release(decision)
            raise
        self._gate.settle(decision)
        return result

    async def _release_signal(
        self,
        command: GetSignalCommand,
        tolerance: RiskTolerance,
        portfolio_value: Decimal,
        hedge_percent: Decimal,
        paid: bool,
    ) -> SignalResult:
        threshold = threshold_for(tolerance)

        key = signal_cache_key(
            tolerance, portfolio_value, hedge_percent, command.user_address
        )
        entry = self._cache.get_entry(key)
        if entry is not None and entry.market is not None:
            logger.info("Serving cached signal %s", entry.signal.signal_id)
            return SignalResult(
                signal=entry.signal,
                market=entry.market,
                paid=paid,
                cached=True,
                actionable=entry.signal.is_actionable(threshold),
                threshold=threshold,
            )

        market = self._market_port.get_snapshot()
        portfolio = self._portfolio_for(command, portfolio_value, hedge_percent, market)

        logger.info(
            "Generating signal: tolerance=%s hedge=%s%% value=%s",
            tolerance.value,
            hedge_percent,
            portfolio_value,
        )
        signal = await self._engine.generate_signal(market, portfolio, tolerance)
        self._cache.put(key, signal, market=market)

        return SignalResult(
            signal=signal,
            market=market,
            paid=paid,
            cached=False,
            actionable=signal.is_actionable(threshold),
            threshold=threshold,
        )

    def _portfolio_for(
        self,
        command: GetSignalCommand,
        portfolio_value: Decimal,
        hedge_percent: Decimal,
        market: MarketSnapshot,
    ) -> PortfolioSnapshot:
        if self._ledger is not None and command.user_address:
            portfolio = self._ledger.get_portfolio(command.user_address, market.price)
            if portfolio is not None:
                logger.debug(
                    "Using ledger holdings for %s", short_ref(command.user_address)
                )
                return portfolio
        return PortfolioSnapshot.from_allocation(
            portfolio_value, hedge_percent, market.price
        )


def _validate_allocation(portfolio_value: Decimal, hedge_percent: Decimal) -> None:
    if not portfolio_value.is_finite() or not (
        ZERO <= portfolio_value <= MAX_PORTFOLIO_VALUE
    ):
        raise ValidationError(
            "portfolioValue", f"must be between 0 and {MAX_PORTFOLIO_VALUE:,}"
        )
    if not hedge_percent.is_finite() or not (ZERO <= hedge_percent <= HUNDRED):
        raise ValidationError("hedgePercent", "must be between 0 and 100")
