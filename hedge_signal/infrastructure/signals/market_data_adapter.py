"""
Adapter: Synthetic market data.

Implements MarketDataPort. Produces a plausible snapshot around a
configured base price; stands in for a real price feed.
"""

import random
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from hedge_signal.domain.signals.entities import (
    CENT,
    MarketSentiment,
    MarketSnapshot,
    to_decimal,
)
from hedge_signal.domain.signals.ports import MarketDataPort
from hedge_signal.shared.clock import utc_now

PRICE_SPREAD = 25.0
CHANGE_SPREAD = 1.5
BASE_INFLATION = 3.2
INFLATION_SPREAD = 0.25
BASE_USD_INDEX = 104.5
USD_INDEX_SPREAD = 1.0


class SyntheticMarketDataAdapter(MarketDataPort):
    """Synthetic snapshot generator.

    Each call draws fresh values uniformly around the base figures.

    Args:
        base_price: Centre of the hedge asset price range, in USD.
        rng: Random source; inject a seeded one for reproducible output.
        clock: Timestamp source for ``observed_at``.
    """

    def __init__(
        self,
        base_price: float = 2150.50,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._base_price = base_price
        self._rng = rng or random.Random()
        self._clock = clock

    def _around(self, centre: float, spread: float) -> Decimal:
        value = centre + self._rng.uniform(-spread, spread)
        return to_decimal(value).quantize(CENT)

    def get_snapshot(self) -> MarketSnapshot:
        return MarketSnapshot(
            price=self._around(self._base_price, PRICE_SPREAD),
            change_24h_percent=self._around(0.0, CHANGE_SPREAD),
            inflation_rate_percent=self._around(BASE_INFLATION, INFLATION_SPREAD),
            usd_strength_index=self._around(BASE_USD_INDEX, USD_INDEX_SPREAD),
            sentiment=self._rng.choice(list(MarketSentiment)),
            observed_at=self._clock(),
        )
