"""Authoritative per-pool accounting.

PoolAccounts is the single source of truth for every launched token's
economic state. It exposes exactly three mutations (initialize, apply_trade
and mark_transitioned) and accepts them only from a fixed allow-list of
caller identities.

PoolAccount instances are frozen; each accepted mutation replaces the stored
instance, so a reader never sees a half-applied update.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager

import structlog

from launchpad.errors import (
    AlreadyTransitioned,
    PoolAlreadyExists,
    Unauthorized,
    UnknownPool,
    ValidationError,
)
from launchpad.models.pool import (
    Lifecycle,
    PoolAccount,
    PoolStateChanged,
    TransitionConfig,
)
from launchpad.models.types import normalize_address

logger = structlog.get_logger()

Listener = Callable[[PoolStateChanged], None]


class PoolAccounts:
    """Store of PoolAccount records keyed by pool id (lower-cased token)."""

    def __init__(self, reserve_asset: str, allowed_callers: Iterable[str]) -> None:
        self.reserve_asset = normalize_address(reserve_asset)
        self._allowed = frozenset(allowed_callers)
        self._pools: dict[str, PoolAccount] = {}
        self._listeners: list[Listener] = []
        # One queue per open deferred() scope
        self._pending: list[list[PoolStateChanged]] = []

    # --- Reads ---

    def get(self, pool_id: str) -> PoolAccount:
        """Return a pool's account.

        Raises:
            UnknownPool: If no pool exists for the id
        """
        try:
            return self._pools[normalize_address(pool_id)]
        except KeyError:
            raise UnknownPool(f"Unknown pool: {pool_id}") from None

    def __contains__(self, pool_id: object) -> bool:
        return isinstance(pool_id, str) and normalize_address(pool_id) in self._pools

    def __len__(self) -> int:
        return len(self._pools)

    def pool_ids(self) -> list[str]:
        return list(self._pools)

    # --- Mutations ---

    def initialize(
        self,
        caller: str,
        token: str,
        creator: str,
        total_supply: int,
        premine: int,
        strategy_id: str,
        transition: TransitionConfig,
        initial_price: int,
        created_at: int = 0,
    ) -> PoolAccount:
        """Create the account for a newly launched token.

        Circulating supply starts at the premine, reserve at zero and the
        lifecycle ACTIVE.

        Raises:
            Unauthorized: If caller is not allow-listed
            ValidationError: If total_supply is zero or premine exceeds it
            PoolAlreadyExists: If the token already has a pool
        """
        self._authorize(caller, "initialize")
        pool_id = normalize_address(token)
        if total_supply <= 0:
            raise ValidationError("Total supply must be positive")
        if premine < 0 or premine > total_supply:
            raise ValidationError(f"Premine {premine} outside [0, {total_supply}]")
        if pool_id in self._pools:
            raise PoolAlreadyExists(f"Pool already exists for token {pool_id}")
        if pool_id == self.reserve_asset:
            raise ValidationError("Token cannot be the reserve asset")

        pool = PoolAccount(
            token=pool_id,
            reserve_asset=self.reserve_asset,
            creator=creator,
            total_supply=total_supply,
            circulating_supply=premine,
            reserve_collected=0,
            last_price=initial_price,
            strategy_id=strategy_id,
            transition=transition,
            created_at=created_at,
        )
        self._pools[pool_id] = pool
        logger.info(
            "pool_initialized",
            pool_id=pool_id,
            creator=creator,
            total_supply=total_supply,
            premine=premine,
            strategy_id=strategy_id,
            transition=transition.kind,
        )
        self._emit(pool)
        return pool

    def apply_trade(
        self,
        caller: str,
        pool_id: str,
        new_circulating: int,
        new_reserve: int,
        new_price: int,
    ) -> PoolAccount:
        """Replace the three mutable trading fields of a pool.

        The caller is responsible for values consistent with the assets
        actually moved; this method only enforces the account invariants.

        Raises:
            Unauthorized: If caller is not allow-listed
            UnknownPool: If the pool does not exist
            AlreadyTransitioned: If the pool has migrated
            ValidationError: If the new values break an account invariant
        """
        self._authorize(caller, "apply_trade")
        pool = self.get(pool_id)
        if pool.is_transitioned:
            raise AlreadyTransitioned(f"Pool {pool.pool_id} has transitioned")
        if not 0 <= new_circulating <= pool.total_supply:
            raise ValidationError(
                f"Circulating supply {new_circulating} outside [0, {pool.total_supply}]"
            )
        if new_reserve < 0:
            raise ValidationError(f"Reserve cannot go negative: {new_reserve}")
        if new_price <= 0:
            raise ValidationError(f"Price must be positive, got {new_price}")

        updated = dataclasses.replace(
            pool,
            circulating_supply=new_circulating,
            reserve_collected=new_reserve,
            last_price=new_price,
        )
        self._pools[pool.pool_id] = updated
        self._emit(updated)
        return updated

    def mark_transitioned(self, caller: str, pool_id: str, transition_price: int) -> PoolAccount:
        """Latch the pool into TRANSITIONED and freeze its price.

        Raises:
            Unauthorized: If caller is not allow-listed
            UnknownPool: If the pool does not exist
            AlreadyTransitioned: If the pool already migrated
        """
        self._authorize(caller, "mark_transitioned")
        pool = self.get(pool_id)
        if pool.is_transitioned:
            raise AlreadyTransitioned(f"Pool {pool.pool_id} has already transitioned")

        updated = dataclasses.replace(
            pool,
            lifecycle=Lifecycle.TRANSITIONED,
            transition_price=transition_price,
        )
        self._pools[pool.pool_id] = updated
        logger.info("pool_transitioned", pool_id=pool.pool_id, transition_price=transition_price)
        self._emit(updated)
        return updated

    def _authorize(self, caller: str, action: str) -> None:
        if caller not in self._allowed:
            logger.warning("unauthorized_pool_mutation", caller=caller, action=action)
            raise Unauthorized(f"{caller} may not call {action}")

    # --- Notifications ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state-change listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, pool: PoolAccount) -> None:
        event = PoolStateChanged(
            pool_id=pool.pool_id,
            circulating_supply=pool.circulating_supply,
            reserve_collected=pool.reserve_collected,
            last_price=pool.last_price,
            lifecycle=pool.lifecycle,
        )
        if self._pending:
            self._pending[-1].append(event)
        else:
            self._deliver([event])

    def _deliver(self, events: list[PoolStateChanged]) -> None:
        for event in events:
            for listener in list(self._listeners):
                listener(event)

    @contextmanager
    def deferred(self) -> Iterator[None]:
        """Hold notifications until the block exits normally.

        Notifications raised inside a failing block are dropped.
        """
        queue: list[PoolStateChanged] = []
        self._pending.append(queue)
        try:
            yield
        except BaseException:
            self._pending.pop()
            raise
        self._pending.pop()
        if self._pending:
            self._pending[-1].extend(queue)
        else:
            self._deliver(queue)

    # --- Transaction support ---

    def snapshot(self) -> dict[str, PoolAccount]:
        return dict(self._pools)

    def restore(self, state: dict[str, PoolAccount]) -> None:
        self._pools = dict(state)
