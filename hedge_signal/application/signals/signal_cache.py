"""
Signal cache.

Memoizes the most recent signal per key for a fixed TTL so repeated
requests do not trigger redundant paid model calls. Backed by a
KeyValueStore port; the default store is process-local, so callers
must not assume de-duplication across instances.
"""

import hashlib
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from hedge_signal.domain.signals.entities import (
    CacheEntry,
    MarketSnapshot,
    RiskTolerance,
    TradingSignal,
)
from hedge_signal.domain.signals.ports import KeyValueStore
from hedge_signal.shared.clock import utc_now

logger = logging.getLogger(__name__)

DEFAULT_SIGNAL_TTL = timedelta(minutes=15)
CACHE_KEY_PREFIX = "signal:"


def signal_cache_key(
    tolerance: RiskTolerance,
    portfolio_value: Decimal,
    hedge_percent: Decimal,
    user_address: Optional[str] = None,
) -> str:
    """Build the cache key for one caller and parameter set.

    Numbers are normalized so that ``1000`` and ``1000.00`` share a key.
    """
    parts = [
        tolerance.value,
        format(Decimal(portfolio_value).normalize(), "f"),
        format(Decimal(hedge_percent).normalize(), "f"),
        (user_address or "").strip().lower(),
    ]
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return CACHE_KEY_PREFIX + digest[:32]


class SignalCache:
    """TTL cache of trading signals keyed by request identity.

    Expiry is lazy: an entry past its ``expires_at`` reads as absent.
    Writing a key replaces the previous entry wholesale.
    """

    def __init__(
        self,
        store: KeyValueStore,
        default_ttl: timedelta = DEFAULT_SIGNAL_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._default_ttl = default_ttl
        self._clock = clock

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Return the live cache entry for ``key`` or None."""
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            logger.debug("Cache entry expired: %s", key)
            self._store.delete(key)
            return None
        return entry

    def get(self, key: str) -> Optional[TradingSignal]:
        """Return the cached signal for ``key`` or None."""
        entry = self.get_entry(key)
        return entry.signal if entry is not None else None

    def put(
        self,
        key: str,
        signal: TradingSignal,
        ttl: Optional[timedelta] = None,
        market: Optional[MarketSnapshot] = None,
    ) -> CacheEntry:
        """Store ``signal`` under ``key`` for ``ttl`` (default TTL if None)."""
        ttl = ttl if ttl is not None else self._default_ttl
        entry = CacheEntry(
            key=key,
            signal=signal,
            expires_at=self._clock() + ttl,
            market=market,
        )
        self._store.put(key, entry, ttl)
        logger.debug("Cached signal %s under %s for %s", signal.signal_id, key, ttl)
        return entry
