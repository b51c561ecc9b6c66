"""
Adapter: In-process key-value store.

Implements the KeyValueStore port with a dict and lazy expiry.
Backs the signal cache and the used-receipt registry when no
shared store is configured.

Used-receipt keys are written once and rarely read again, so expired
entries are also swept on every ``purge_every``-th write.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from hedge_signal.domain.signals.ports import KeyValueStore
from hedge_signal.shared.clock import utc_now

logger = logging.getLogger(__name__)

DEFAULT_PURGE_EVERY = 256


class InMemoryKeyValueStore(KeyValueStore):
    """Thread-safe dict store with TTL expiry.

    Args:
        clock: Time source for expiry.
        purge_every: Sweep expired entries after this many writes.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        purge_every: int = DEFAULT_PURGE_EVERY,
    ) -> None:
        self._clock = clock
        self._purge_every = max(1, purge_every)
        self._writes = 0
        self._items: Dict[str, Tuple[Any, Optional[datetime]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._live_value(key, self._clock())

    def put(self, key: str, value: Any, ttl: Optional[timedelta] = None) -> None:
        now = self._clock()
        with self._lock:
            self._write(key, value, ttl, now)

    def put_if_absent(
        self, key: str, value: Any, ttl: Optional[timedelta] = None
    ) -> bool:
        now = self._clock()
        with self._lock:
            if self._live_value(key, now) is not None:
                return False
            self._write(key, value, ttl, now)
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    # caller holds the lock for the helpers below

    def _live_value(self, key: str, now: datetime) -> Optional[Any]:
        item = self._items.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and now >= expires_at:
            del self._items[key]
            logger.debug("Key expired: %s", key)
            return None
        return value

    def _write(
        self, key: str, value: Any, ttl: Optional[timedelta], now: datetime
    ) -> None:
        self._items[key] = (value, now + ttl if ttl is not None else None)
        self._writes += 1
        if self._writes % self._purge_every == 0:
            self._purge(now)

    def _purge(self, now: datetime) -> None:
        expired = [
            key
            for key, (_, expires_at) in self._items.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._items[key]
        if expired:
            logger.debug("Purged %d expired keys", len(expired))
