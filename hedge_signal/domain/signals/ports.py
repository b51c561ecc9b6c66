"""
Port interfaces (ABCs) for the signals bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from decimal import Decimal
from typing import Any, Optional

from hedge_signal.domain.signals.entities import MarketSnapshot, PortfolioSnapshot
from hedge_signal.domain.signals.payment import PaymentProof


class MarketDataPort(ABC):
    """Port for obtaining the current market snapshot."""

    @abstractmethod
    def get_snapshot(self) -> MarketSnapshot:
        """Return the current hedge asset market indicators."""
        raise NotImplementedError


class LedgerPort(ABC):
    """Read-only port onto the on-chain vault holding user balances.

    This subsystem never writes to the ledger.
    """

    @abstractmethod
    def get_portfolio(
        self, address: str, hedge_price: Decimal
    ) -> Optional[PortfolioSnapshot]:
        """Return the holdings of ``address``, or None if unknown.

        Args:
            address: Wallet address of the vault user.
            hedge_price: Current hedge asset price used to value holdings.
        """
        raise NotImplementedError


class RecommendationModelPort(ABC):
    """Port for the text-completion service behind model-backed signals."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Return False when the model cannot be called at all (e.g. no key)."""
        raise NotImplementedError

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send a prompt and return the raw text reply.

        Raises:
            ModelUnavailableError: If the service cannot be reached.
        """
        raise NotImplementedError


class PaymentVerifierPort(ABC):
    """Port for confirming that a payment proof refers to a real transfer."""

    @abstractmethod
    async def confirm(self, proof: PaymentProof) -> bool:
        """Return True if the referenced transaction is confirmed."""
        raise NotImplementedError


class KeyValueStore(ABC):
    """Port for the key-value store behind the cache and proof registry.

    Entries expire lazily: a read after the TTL behaves as a miss.
    Implementations may be process-local or shared between instances.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key`` or None."""
        raise NotImplementedError

    @abstractmethod
    def put(self, key: str, value: Any, ttl: Optional[timedelta] = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        raise NotImplementedError

    @abstractmethod
    def put_if_absent(
        self, key: str, value: Any, ttl: Optional[timedelta] = None
    ) -> bool:
        """Store ``value`` only if ``key`` has no live entry.

        The check and the write are one atomic step. Returns True if the
        value was stored.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        raise NotImplementedError
