"""Settlement collaborators.

The core never holds assets itself. Every trade and liquidity call asks a
Settlement to move the input asset into the pool vault and the output asset
back to the caller, inside the same atomic unit of work.

InMemorySettlement keeps balances per (party, asset) and can snapshot and
restore them, so a failing call leaves balances untouched. It backs the tests
and the HTTP server.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Protocol, runtime_checkable

import structlog

from launchpad.constants import POOL_VAULT
from launchpad.errors import InsufficientBalance, InsufficientLiquidity, ValidationError

logger = structlog.get_logger()


@runtime_checkable
class Settlement(Protocol):
    """Moves assets between parties and the pool vault."""

    vault: str

    def issue(self, party: str, asset: str, amount: int) -> None:
        """Create new units of asset owned by party (token launch)."""
        ...

    def take_from(self, payer: str, asset: str, amount: int) -> None:
        """Move amount of asset from payer into the pool vault."""
        ...

    def give_to(self, payee: str, asset: str, amount: int) -> None:
        """Move amount of asset from the pool vault to payee."""
        ...


class InMemorySettlement:
    """Dictionary-backed settlement with snapshot/restore."""

    def __init__(self, vault: str = POOL_VAULT) -> None:
        self.vault = vault
        self._balances: defaultdict[tuple[str, str], int] = defaultdict(int)

    def balance_of(self, party: str, asset: str) -> int:
        return self._balances.get((party, asset), 0)

    def vault_balance(self, asset: str) -> int:
        return self.balance_of(self.vault, asset)

    def issue(self, party: str, asset: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError(f"Cannot issue a negative amount: {amount}")
        self._balances[(party, asset)] += amount

    def take_from(self, payer: str, asset: str, amount: int) -> None:
        self._require_positive(amount)
        held = self.balance_of(payer, asset)
        if held < amount:
            raise InsufficientBalance(f"{payer} holds {held} of {asset}, needs {amount}")
        self._balances[(payer, asset)] = held - amount
        self._balances[(self.vault, asset)] += amount
        logger.debug("settlement_take", payer=payer, asset=asset, amount=amount)

    def give_to(self, payee: str, asset: str, amount: int) -> None:
        self._require_positive(amount)
        held = self.vault_balance(asset)
        if held < amount:
            raise InsufficientLiquidity(f"Vault holds {held} of {asset}, owes {amount}")
        self._balances[(self.vault, asset)] = held - amount
        self._balances[(payee, asset)] += amount
        logger.debug("settlement_give", payee=payee, asset=asset, amount=amount)

    @staticmethod
    def _require_positive(amount: int) -> None:
        if amount <= 0:
            raise ValidationError(f"Transfer amount must be positive, got {amount}")

    def snapshot(self) -> dict[tuple[str, str], int]:
        return dict(self._balances)

    def restore(self, state: dict[tuple[str, str], int]) -> None:
        self._balances = defaultdict(int, state)
