"""Pytest configuration and fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from launchpad.launchpad import Launchpad
from launchpad.models.pool import PoolAccount
from launchpad.settlement import InMemorySettlement
from tests.helpers import ALICE, WETH, FixedClock, fund, launch_pool, make_launchpad

# =============================================================================
# Mock classes for dependency injection
# =============================================================================


class CallbackSettlement(InMemorySettlement):
    """In-memory settlement that runs a callback during take_from.

    Simulates a settlement layer that calls back into the launchpad while a
    trade is mid-flight (e.g. a token transfer hook).

    Usage:
        settlement = CallbackSettlement()
        settlement.on_take = lambda: launchpad.buy(ALICE, TOKEN, 10**18)
    """

    def __init__(self) -> None:
        super().__init__()
        self.on_take: Callable[[], object] | None = None

    def take_from(self, payer: str, asset: str, amount: int) -> None:
        super().take_from(payer, asset, amount)
        if self.on_take is not None:
            callback, self.on_take = self.on_take, None
            callback()


@dataclass
class FailingMigrator:
    """Migrator that raises a plain exception (not MigrationFailed)."""

    error: Exception = field(default_factory=lambda: RuntimeError("AMM unavailable"))
    calls: int = 0

    def migrate(self, pool_id: str, token_reserve: int, reserve_amount: int, price: int) -> None:
        self.calls += 1
        raise self.error


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def launchpad(clock: FixedClock) -> Launchpad:
    """Launchpad with in-memory settlement, no risk gate."""
    return make_launchpad(clock=clock)


@pytest.fixture
def pool(launchpad: Launchpad) -> PoolAccount:
    """Reference exponential pool (0.4 / 0.000025 / 100 tokens), never transitions early."""
    return launch_pool(launchpad)


@pytest.fixture
def funded(launchpad: Launchpad) -> str:
    """ALICE holding 1000 WETH."""
    fund(launchpad, ALICE, WETH)
    return ALICE
