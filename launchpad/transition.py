"""Transition from curve pricing to the downstream AMM.

TransitionEvaluator is a pure predicate over a pool account and a clock.
The migration itself is an external routine behind the Migrator protocol,
invoked exactly once per pool by the swap engine.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import structlog

from launchpad.constants import BPS_DENOMINATOR
from launchpad.errors import MigrationFailed
from launchpad.models.pool import (
    PercentageTransition,
    PoolAccount,
    PriceTransition,
    TimeTransition,
)

logger = structlog.get_logger()

Clock = Callable[[], int]


def system_clock() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


class TransitionEvaluator:
    """Decides whether a pool may leave curve-priced trading."""

    def __init__(self, clock: Clock = system_clock) -> None:
        self.clock = clock

    def now(self) -> int:
        return self.clock()

    def can_transition(self, pool: PoolAccount) -> bool:
        """True when the pool's configured condition is met.

        Always False once the pool has transitioned.
        """
        if pool.is_transitioned:
            return False

        config = pool.transition
        if isinstance(config, PercentageTransition):
            sold_bps = pool.circulating_supply * BPS_DENOMINATOR // pool.total_supply
            return sold_bps >= config.threshold_bps
        if isinstance(config, PriceTransition):
            return pool.last_price >= config.threshold_price
        if isinstance(config, TimeTransition):
            return self.now() >= config.threshold_timestamp
        raise TypeError(f"Unknown transition config: {type(config)}")


@runtime_checkable
class Migrator(Protocol):
    """Seeds the downstream AMM pool from a transition snapshot.

    Implementations raise MigrationFailed (or any exception) on failure.
    """

    def migrate(self, pool_id: str, token_reserve: int, reserve_amount: int, price: int) -> None:
        ...


@dataclass(frozen=True)
class MigrationRecord:
    """Snapshot handed to the migration routine."""

    pool_id: str
    token_reserve: int
    reserve_amount: int
    price: int


class RecordingMigrator:
    """Migrator that records every call; optionally fails on demand."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.migrations: list[MigrationRecord] = []

    def migrate(self, pool_id: str, token_reserve: int, reserve_amount: int, price: int) -> None:
        if self.fail:
            raise MigrationFailed(f"Migration of {pool_id} rejected")
        record = MigrationRecord(pool_id, token_reserve, reserve_amount, price)
        self.migrations.append(record)
        logger.info(
            "pool_migrated",
            pool_id=pool_id,
            token_reserve=token_reserve,
            reserve_amount=reserve_amount,
            price=price,
        )

    def snapshot(self) -> int:
        return len(self.migrations)

    def restore(self, state: int) -> None:
        del self.migrations[state:]
