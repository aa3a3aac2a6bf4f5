"""Tests for settlement balances and the unit of work."""

import pytest

from launchpad.atomic import ReentrancyGuard, UnitOfWork, atomic
from launchpad.errors import (
    InsufficientBalance,
    InsufficientLiquidity,
    ReentrancyError,
    ValidationError,
)
from launchpad.pools import PoolAccounts
from launchpad.settlement import InMemorySettlement, Settlement
from tests.helpers import ALICE, ONE, TOKEN, WETH


class TestInMemorySettlement:
    def test_take_and_give(self):
        settlement = InMemorySettlement()
        settlement.issue(ALICE, WETH, 5 * ONE)
        settlement.take_from(ALICE, WETH, 2 * ONE)
        assert settlement.balance_of(ALICE, WETH) == 3 * ONE
        assert settlement.vault_balance(WETH) == 2 * ONE
        settlement.give_to(ALICE, WETH, ONE)
        assert settlement.balance_of(ALICE, WETH) == 4 * ONE
        assert settlement.vault_balance(WETH) == ONE

    def test_payer_short(self):
        settlement = InMemorySettlement()
        with pytest.raises(InsufficientBalance):
            settlement.take_from(ALICE, WETH, 1)

    def test_vault_short(self):
        settlement = InMemorySettlement()
        with pytest.raises(InsufficientLiquidity):
            settlement.give_to(ALICE, WETH, 1)

    def test_non_positive_transfer(self):
        settlement = InMemorySettlement()
        with pytest.raises(ValidationError):
            settlement.take_from(ALICE, WETH, 0)

    def test_satisfies_protocol(self):
        assert isinstance(InMemorySettlement(), Settlement)


class TestAtomic:
    def test_restores_on_error(self):
        settlement = InMemorySettlement()
        settlement.issue(ALICE, WETH, ONE)
        with pytest.raises(RuntimeError):
            with atomic([settlement]):
                settlement.take_from(ALICE, WETH, ONE)
                raise RuntimeError("abort")
        assert settlement.balance_of(ALICE, WETH) == ONE
        assert settlement.vault_balance(WETH) == 0

    def test_keeps_changes_on_success(self):
        settlement = InMemorySettlement()
        settlement.issue(ALICE, WETH, ONE)
        with atomic([settlement]):
            settlement.take_from(ALICE, WETH, ONE)
        assert settlement.vault_balance(WETH) == ONE


class TestReentrancyGuard:
    def test_same_pool_rejected(self):
        guard = ReentrancyGuard()
        with guard.hold(TOKEN):
            assert guard.is_locked(TOKEN)
            with pytest.raises(ReentrancyError):
                with guard.hold(TOKEN):
                    pass
        assert not guard.is_locked(TOKEN)

    def test_other_pools_independent(self):
        guard = ReentrancyGuard()
        with guard.hold(TOKEN), guard.hold(WETH):
            assert guard.is_locked(WETH)

    def test_released_after_error(self):
        guard = ReentrancyGuard()
        with pytest.raises(RuntimeError):
            with guard.hold(TOKEN):
                raise RuntimeError("abort")
        assert not guard.is_locked(TOKEN)


class TestUnitOfWork:
    def test_enlist_ignores_plain_objects(self):
        accounts = PoolAccounts(WETH, allowed_callers=())
        unit = UnitOfWork(accounts)
        unit.enlist(object())
        unit.enlist(accounts)
        assert unit._participants == [accounts]

    def test_rolls_back_enlisted(self):
        accounts = PoolAccounts(WETH, allowed_callers=())
        settlement = InMemorySettlement()
        settlement.issue(ALICE, WETH, ONE)
        unit = UnitOfWork(accounts)
        unit.enlist(settlement)
        with pytest.raises(RuntimeError):
            with unit(TOKEN):
                settlement.take_from(ALICE, WETH, ONE)
                raise RuntimeError("abort")
        assert settlement.balance_of(ALICE, WETH) == ONE
        assert not unit.guard.is_locked(TOKEN)
