"""
Adapter: Vault ledger.

Implements LedgerPort with an in-process address book. Addresses are
matched case-insensitively. When empty, every lookup misses and the
caller falls back to the allocation sent in the request.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional

from hedge_signal.domain.signals.entities import (
    HUNDRED,
    ZERO,
    PortfolioSnapshot,
    to_decimal,
)
from hedge_signal.domain.signals.payment import normalize_address
from hedge_signal.domain.signals.ports import LedgerPort
from hedge_signal.shared.logging import short_ref

logger = logging.getLogger(__name__)

DEMO_ADDRESS = "0x000000000000000000000000000000000000dEaD"


@dataclass(frozen=True)
class VaultBalance:
    """Raw balances held by one vault user."""

    stable_amount: Decimal
    hedge_asset_amount: Decimal


class InMemoryLedgerAdapter(LedgerPort):
    """Read-only view over known vault balances."""

    def __init__(self, balances: Optional[Dict[str, VaultBalance]] = None) -> None:
        self._balances: Dict[str, VaultBalance] = {}
        for address, balance in (balances or {}).items():
            self.register(address, balance)

    def register(self, address: str, balance: VaultBalance) -> None:
        """Record the balances of ``address`` (test and demo seeding)."""
        self._balances[normalize_address(address)] = balance

    def get_portfolio(
        self, address: str, hedge_price: Decimal
    ) -> Optional[PortfolioSnapshot]:
        balance = self._balances.get(normalize_address(address))
        if balance is None:
            logger.debug("No ledger entry for %s", short_ref(address))
            return None

        hedge_value = balance.hedge_asset_amount * to_decimal(hedge_price)
        total = balance.stable_amount + hedge_value
        hedge_percent = hedge_value / total * HUNDRED if total > ZERO else ZERO
        return PortfolioSnapshot(
            total_value=total,
            stable_amount=balance.stable_amount,
            hedge_asset_amount=balance.hedge_asset_amount,
            hedge_percent=hedge_percent,
        )


def demo_ledger() -> InMemoryLedgerAdapter:
    """Return a ledger seeded with a single demo vault."""
    return InMemoryLedgerAdapter(
        {
            DEMO_ADDRESS: VaultBalance(
                stable_amount=Decimal("810.10"),
                hedge_asset_amount=Decimal("0.203"),
            )
        }
    )
