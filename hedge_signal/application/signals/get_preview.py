"""
Use case: Free teaser for the paid signal.

Input: none
Output: SignalPreviewResult
Side effects: None.
Failure cases: None.
"""

import logging

from hedge_signal.application.signals.dtos import SignalPreviewResult
from hedge_signal.domain.signals.payment import PaymentRequirement
from hedge_signal.domain.signals.ports import MarketDataPort

logger = logging.getLogger(__name__)


class GetSignalPreviewUseCase:
    """Returns the price of a signal and the headline market figures."""

    def __init__(
        self, market_port: MarketDataPort, requirement: PaymentRequirement
    ) -> None:
        self._market_port = market_port
        self._requirement = requirement

    def execute(self) -> SignalPreviewResult:
        market = self._market_port.get_snapshot()
        logger.debug("Serving signal preview at price %s", market.price)
        return SignalPreviewResult(
            requirement=self._requirement,
            price=market.price,
            change_24h_percent=market.change_24h_percent,
        )
