"""Pre-transition liquidity bookkeeping.

Entries are keyed by (depositor, pool, asset). Depositing into a curve pool
is economically the same as trading against it, so every deposit and
withdrawal also moves the pool account:

- pool token deposit: circulating supply falls (tokens return to the pool)
- pool token withdrawal: circulating supply rises
- reserve deposit: reserve collected rises
- reserve withdrawal: reserve collected falls, never below zero
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

import structlog

from launchpad.constants import LIQUIDITY_LEDGER_IDENTITY
from launchpad.errors import (
    AlreadyTransitioned,
    InsufficientLiquidity,
    InvalidTokenPath,
    ValidationError,
)
from launchpad.models.types import normalize_address

if TYPE_CHECKING:
    from launchpad.atomic import UnitOfWork
    from launchpad.models.pool import PoolAccount
    from launchpad.pools.accounts import PoolAccounts
    from launchpad.risk import RiskGate
    from launchpad.settlement import Settlement
    from launchpad.strategies.registry import StrategyRegistry

logger = structlog.get_logger()

EntryKey = tuple[str, str, str]


class LiquidityLedger:
    """Per-depositor, per-pool, per-asset deposits made before transition."""

    def __init__(
        self,
        accounts: PoolAccounts,
        strategies: StrategyRegistry,
        settlement: Settlement,
        unit_of_work: UnitOfWork,
        risk_gate: RiskGate | None = None,
        identity: str = LIQUIDITY_LEDGER_IDENTITY,
    ) -> None:
        self.accounts = accounts
        self.strategies = strategies
        self.settlement = settlement
        self.unit_of_work = unit_of_work
        self.risk_gate = risk_gate
        self.identity = identity
        self._entries: defaultdict[EntryKey, int] = defaultdict(int)

    def balance_of(self, depositor: str, pool_id: str, asset: str) -> int:
        """Amount of asset the depositor currently has in the pool."""
        key = (depositor, normalize_address(pool_id), normalize_address(asset))
        return self._entries.get(key, 0)

    def deposit(self, depositor: str, pool_id: str, asset: str, amount: int) -> int:
        """Deposit liquidity and return the depositor's new entry balance.

        Raises:
            ValidationError: If amount is not positive
            UnknownPool: If the pool does not exist
            AlreadyTransitioned: If the pool has migrated
            InvalidTokenPath: If asset is not one of the pool's two assets
            RiskRejected: If the risk gate rejects the pool's token
        """
        if amount <= 0:
            raise ValidationError(f"Deposit amount must be positive, got {amount}")
        pool_id = normalize_address(pool_id)
        asset = normalize_address(asset)

        with self.unit_of_work(pool_id):
            pool = self._open_pool(pool_id, asset)
            if self.risk_gate is not None:
                self.risk_gate.check_token(pool.pool_id)

            if asset == pool.token:
                if amount > pool.circulating_supply:
                    raise ValidationError(
                        f"Deposit of {amount} tokens exceeds circulating supply "
                        f"{pool.circulating_supply}"
                    )
                new_circulating = pool.circulating_supply - amount
                new_reserve = pool.reserve_collected
            else:
                new_circulating = pool.circulating_supply
                new_reserve = pool.reserve_collected + amount

            self.settlement.take_from(depositor, asset, amount)
            key = (depositor, pool.pool_id, asset)
            self._entries[key] += amount
            self._record(pool, new_circulating, new_reserve)
            balance = self._entries[key]

        logger.info(
            "liquidity_deposited",
            pool_id=pool_id,
            depositor=depositor,
            asset=asset,
            amount=amount,
            balance=balance,
        )
        return balance

    def withdraw(self, depositor: str, pool_id: str, asset: str, amount: int) -> int:
        """Withdraw liquidity and return the depositor's remaining balance.

        Raises:
            ValidationError: If amount is not positive
            UnknownPool: If the pool does not exist
            AlreadyTransitioned: If the pool has migrated
            InvalidTokenPath: If asset is not one of the pool's two assets
            InsufficientLiquidity: If amount exceeds the depositor's entry, or
                what the pool still holds of the asset
        """
        if amount <= 0:
            raise ValidationError(f"Withdrawal amount must be positive, got {amount}")
        pool_id = normalize_address(pool_id)
        asset = normalize_address(asset)

        with self.unit_of_work(pool_id):
            pool = self._open_pool(pool_id, asset)
            key = (depositor, pool.pool_id, asset)
            held = self._entries.get(key, 0)
            if amount > held:
                raise InsufficientLiquidity(
                    f"{depositor} has {held} of {asset} deposited, cannot withdraw {amount}"
                )

            if asset == pool.token:
                if amount > pool.pool_held_supply:
                    raise InsufficientLiquidity(
                        f"Pool holds {pool.pool_held_supply} tokens, cannot release {amount}"
                    )
                new_circulating = pool.circulating_supply + amount
                new_reserve = pool.reserve_collected
            else:
                if amount > pool.reserve_collected:
                    raise InsufficientLiquidity(
                        f"Pool holds {pool.reserve_collected} reserve, cannot release {amount}"
                    )
                new_circulating = pool.circulating_supply
                new_reserve = pool.reserve_collected - amount

            remaining = held - amount
            if remaining:
                self._entries[key] = remaining
            else:
                del self._entries[key]
            self._record(pool, new_circulating, new_reserve)
            self.settlement.give_to(depositor, asset, amount)

        logger.info(
            "liquidity_withdrawn",
            pool_id=pool_id,
            depositor=depositor,
            asset=asset,
            amount=amount,
            balance=remaining,
        )
        return remaining

    def _open_pool(self, pool_id: str, asset: str) -> PoolAccount:
        pool = self.accounts.get(pool_id)
        if pool.is_transitioned:
            raise AlreadyTransitioned(f"Pool {pool_id} has transitioned")
        if asset not in (pool.token, pool.reserve_asset):
            raise InvalidTokenPath(f"Asset {asset} is not traded by pool {pool_id}")
        return pool

    def _record(self, pool: PoolAccount, new_circulating: int, new_reserve: int) -> None:
        strategy = self.strategies.get(pool.strategy_id)
        new_price = strategy.price(pool.pool_id, new_circulating)
        self.accounts.apply_trade(
            self.identity, pool.pool_id, new_circulating, new_reserve, new_price
        )

    # --- Transaction support ---

    def snapshot(self) -> dict[EntryKey, int]:
        return dict(self._entries)

    def restore(self, state: dict[EntryKey, int]) -> None:
        self._entries = defaultdict(int, state)
