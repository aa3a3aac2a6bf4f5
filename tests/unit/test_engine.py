"""Tests for the swap engine through the launchpad facade."""

import pytest

from launchpad.errors import (
    AlreadyTransitioned,
    InsufficientBalance,
    InsufficientLiquidity,
    InvalidTokenPath,
    MigrationFailed,
    NotYetTransitioned,
    ReentrancyError,
    RiskRejected,
    UnknownPool,
    ValidationError,
)
from launchpad.models.pool import PercentageTransition, PriceTransition, TimeTransition
from launchpad.risk import Assessment, StaticRiskOracle
from launchpad.transition import RecordingMigrator
from tests.conftest import CallbackSettlement, FailingMigrator
from tests.helpers import (
    ALICE,
    BOB,
    CREATOR,
    INITIAL_PRICE,
    ONE,
    TOKEN,
    TOKEN_B,
    TOTAL_SUPPLY,
    USDC,
    WETH,
    fund,
    launch_pool,
    make_launchpad,
)


def assert_conserved(launchpad, pool_id=TOKEN):
    """Vault balances mirror the pool account."""
    pool = launchpad.get_pool_info(pool_id)
    assert launchpad.settlement.vault_balance(pool_id) == pool.pool_held_supply
    assert launchpad.settlement.vault_balance(WETH) == pool.reserve_collected
    assert 0 <= pool.circulating_supply <= pool.total_supply


class TestBuy:
    def test_reference_scenario(self, launchpad, pool, funded):
        """0.4 initial price, 2 reserve in: just under 5 tokens out."""
        result = launchpad.buy(ALICE, TOKEN, 2 * ONE)
        assert 4_999 * ONE // 1000 < result.amount_out < 5 * ONE
        assert result.amount_in == 2 * ONE
        assert result.new_price > INITIAL_PRICE
        assert not result.transitioned

        pool = launchpad.get_pool_info(TOKEN)
        assert pool.circulating_supply == result.amount_out
        assert pool.reserve_collected == 2 * ONE
        assert pool.last_price == result.new_price
        assert launchpad.get_price(TOKEN) == result.new_price
        assert launchpad.settlement.balance_of(ALICE, TOKEN) == result.amount_out
        assert launchpad.settlement.balance_of(ALICE, WETH) == 998 * ONE
        assert_conserved(launchpad)

    def test_delta(self, launchpad, pool, funded):
        result = launchpad.buy(ALICE, TOKEN, 2 * ONE)
        assert result.delta == {WETH: -2 * ONE, TOKEN: result.amount_out}

    def test_pair_order_and_direction(self, launchpad, pool, funded):
        """(token, reserve) with one_for_zero is also a buy."""
        result = launchpad.trade(ALICE, TOKEN, (TOKEN, WETH), False, -2 * ONE)
        assert result.token_in == WETH
        assert result.token_out == TOKEN

    def test_exact_output(self, launchpad, pool, funded):
        result = launchpad.trade(ALICE, TOKEN, (WETH, TOKEN), True, 5 * ONE)
        assert result.amount_out == 5 * ONE
        assert 2 * ONE < result.amount_in < 21 * ONE // 10
        assert launchpad.get_pool_info(TOKEN).reserve_collected == result.amount_in
        assert_conserved(launchpad)

    def test_buys_raise_price(self, launchpad, pool, funded):
        prices = [launchpad.buy(ALICE, TOKEN, ONE).new_price for _ in range(5)]
        assert all(a < b for a, b in zip(prices, prices[1:]))

    def test_unfunded_trader(self, launchpad, pool):
        with pytest.raises(InsufficientBalance):
            launchpad.buy(BOB, TOKEN, ONE)
        assert launchpad.get_pool_info(TOKEN).circulating_supply == 0


class TestSell:
    def test_round_trip_loses(self, launchpad, pool, funded):
        bought = launchpad.buy(ALICE, TOKEN, 2 * ONE)
        sold = launchpad.sell(ALICE, TOKEN, bought.amount_out)
        assert sold.amount_out < 2 * ONE
        pool = launchpad.get_pool_info(TOKEN)
        assert pool.circulating_supply == 0
        assert pool.reserve_collected == 2 * ONE - sold.amount_out
        assert_conserved(launchpad)

    def test_premine_sell_without_reserve(self, launchpad):
        launch_pool(launchpad, premine=10 * ONE)
        with pytest.raises(InsufficientLiquidity):
            launchpad.sell(CREATOR, TOKEN, ONE)
        assert launchpad.settlement.balance_of(CREATOR, TOKEN) == 10 * ONE
        assert launchpad.get_pool_info(TOKEN).circulating_supply == 10 * ONE

    def test_exact_reserve_output(self, launchpad, pool, funded):
        launchpad.buy(ALICE, TOKEN, 10 * ONE)
        result = launchpad.trade(ALICE, TOKEN, (TOKEN, WETH), True, 3 * ONE)
        assert result.amount_out == 3 * ONE
        assert result.token_in == TOKEN
        assert launchpad.get_pool_info(TOKEN).reserve_collected == 7 * ONE
        assert_conserved(launchpad)

    def test_exact_reserve_output_above_collected(self, launchpad, pool, funded):
        launchpad.buy(ALICE, TOKEN, ONE)
        with pytest.raises(InsufficientLiquidity):
            launchpad.trade(ALICE, TOKEN, (TOKEN, WETH), True, 2 * ONE)


class TestValidation:
    def test_zero_amount(self, launchpad, pool):
        with pytest.raises(ValidationError):
            launchpad.trade(ALICE, TOKEN, (WETH, TOKEN), True, 0)

    def test_unknown_pool(self, launchpad):
        with pytest.raises(UnknownPool):
            launchpad.buy(ALICE, TOKEN, ONE)

    def test_foreign_pair(self, launchpad, pool, funded):
        with pytest.raises(InvalidTokenPath):
            launchpad.trade(ALICE, TOKEN, (USDC, TOKEN), True, -ONE)

    def test_pair_of_other_pool(self, launchpad, pool, funded):
        launch_pool(launchpad, token=TOKEN_B)
        with pytest.raises(InvalidTokenPath):
            launchpad.trade(ALICE, TOKEN, (WETH, TOKEN_B), True, -ONE)


class TestTransition:
    @pytest.fixture
    def early(self, launchpad):
        """Pool that migrates at 10% sold."""
        return launch_pool(launchpad, transition=PercentageTransition(1_000))

    def test_triggered_by_trade(self, launchpad, early, funded):
        result = launchpad.buy(ALICE, TOKEN, 5 * ONE)
        assert result.transitioned

        pool = launchpad.get_pool_info(TOKEN)
        assert pool.is_transitioned
        assert pool.transition_price == result.new_price
        assert launchpad.migrator.migrations[0].token_reserve == pool.pool_held_supply
        assert launchpad.migrator.migrations[0].reserve_amount == 5 * ONE
        assert len(launchpad.migrator.migrations) == 1

        snapshot = launchpad.transition_snapshot(TOKEN)
        assert snapshot.transition_price == result.new_price
        assert snapshot.reserve_amount == 5 * ONE

    def test_one_way(self, launchpad, early, funded):
        launchpad.buy(ALICE, TOKEN, 5 * ONE)
        price = launchpad.get_price(TOKEN)
        with pytest.raises(AlreadyTransitioned):
            launchpad.buy(ALICE, TOKEN, ONE)
        with pytest.raises(AlreadyTransitioned):
            launchpad.sell(ALICE, TOKEN, ONE)
        with pytest.raises(AlreadyTransitioned):
            launchpad.trigger_transition(TOKEN)
        assert not launchpad.can_transition(TOKEN)
        assert launchpad.get_price(TOKEN) == price
        assert len(launchpad.migrator.migrations) == 1

    def test_below_threshold(self, launchpad, early, funded):
        assert not launchpad.buy(ALICE, TOKEN, ONE).transitioned
        assert not launchpad.can_transition(TOKEN)
        with pytest.raises(NotYetTransitioned):
            launchpad.transition_snapshot(TOKEN)

    def test_price_threshold(self, launchpad, funded):
        launch_pool(launchpad, transition=PriceTransition(INITIAL_PRICE + 1))
        assert launchpad.buy(ALICE, TOKEN, ONE).transitioned

    def test_time_threshold_without_trade(self, launchpad, clock):
        launch_pool(launchpad, transition=TimeTransition(clock.now + 60))
        assert not launchpad.trigger_transition(TOKEN)
        clock.now += 60
        assert launchpad.can_transition(TOKEN)
        assert launchpad.trigger_transition(TOKEN)
        assert launchpad.get_pool_info(TOKEN).transition_price == INITIAL_PRICE

    @pytest.mark.parametrize(
        "migrator", [FailingMigrator(), RecordingMigrator(fail=True)], ids=["error", "rejected"]
    )
    def test_migration_failure_rolls_back_trade(self, migrator):
        launchpad = make_launchpad(migrator=migrator)
        launch_pool(launchpad, transition=PercentageTransition(1_000))
        fund(launchpad, ALICE)

        with pytest.raises(MigrationFailed):
            launchpad.buy(ALICE, TOKEN, 5 * ONE)

        pool = launchpad.get_pool_info(TOKEN)
        assert not pool.is_transitioned
        assert pool.circulating_supply == 0
        assert pool.reserve_collected == 0
        assert launchpad.settlement.balance_of(ALICE, WETH) == 1000 * ONE
        assert launchpad.settlement.balance_of(ALICE, TOKEN) == 0

    def test_failing_migrator_called_once(self):
        migrator = FailingMigrator()
        launchpad = make_launchpad(migrator=migrator)
        launch_pool(launchpad, transition=PercentageTransition(1_000))
        fund(launchpad, ALICE)
        with pytest.raises(MigrationFailed):
            launchpad.buy(ALICE, TOKEN, 5 * ONE)
        assert migrator.calls == 1


class TestRiskGate:
    def test_flagged_strategy_blocks_trades(self):
        oracle = StaticRiskOracle()
        launchpad = make_launchpad(risk_oracle=oracle)
        launch_pool(launchpad)
        fund(launchpad, ALICE)
        oracle.strategies["exponential"] = Assessment(assessed=True, flagged=True)
        with pytest.raises(RiskRejected):
            launchpad.buy(ALICE, TOKEN, ONE)
        assert launchpad.settlement.balance_of(ALICE, WETH) == 1000 * ONE

    def test_flagged_strategy_blocks_launch(self):
        oracle = StaticRiskOracle(strategies={"exponential": Assessment(assessed=True, score=99)})
        launchpad = make_launchpad(risk_oracle=oracle)
        with pytest.raises(RiskRejected):
            launch_pool(launchpad)
        assert TOKEN not in launchpad.accounts

    def test_transition_deferred_until_ready(self):
        not_ready = Assessment(assessed=True, score=10, flagged=True)
        oracle = StaticRiskOracle(transitions={TOKEN: not_ready})
        launchpad = make_launchpad(risk_oracle=oracle)
        launch_pool(launchpad, transition=PercentageTransition(1_000))
        fund(launchpad, ALICE)

        assert not launchpad.buy(ALICE, TOKEN, 5 * ONE).transitioned
        assert not launchpad.can_transition(TOKEN)

        oracle.transitions[TOKEN] = Assessment(assessed=True, score=80, flagged=True)
        assert launchpad.can_transition(TOKEN)
        assert launchpad.trigger_transition(TOKEN)


class TestAtomicity:
    def test_reentrant_trade_rejected_and_rolled_back(self):
        settlement = CallbackSettlement()
        launchpad = make_launchpad(settlement=settlement)
        launch_pool(launchpad)
        fund(launchpad, ALICE)
        settlement.on_take = lambda: launchpad.buy(ALICE, TOKEN, ONE)

        with pytest.raises(ReentrancyError):
            launchpad.buy(ALICE, TOKEN, 2 * ONE)

        assert launchpad.get_pool_info(TOKEN).circulating_supply == 0
        assert settlement.balance_of(ALICE, WETH) == 1000 * ONE
        assert settlement.vault_balance(WETH) == 0
        # Lock released after the failed call
        assert launchpad.buy(ALICE, TOKEN, ONE).amount_out > 0

    def test_callback_into_other_pool_allowed(self):
        settlement = CallbackSettlement()
        launchpad = make_launchpad(settlement=settlement)
        launch_pool(launchpad)
        launch_pool(launchpad, token=TOKEN_B)
        fund(launchpad, ALICE)
        settlement.on_take = lambda: launchpad.buy(ALICE, TOKEN_B, ONE)

        launchpad.buy(ALICE, TOKEN, ONE)
        assert launchpad.get_pool_info(TOKEN).reserve_collected == ONE
        assert launchpad.get_pool_info(TOKEN_B).reserve_collected == ONE

    def test_notifications_only_on_commit(self, launchpad, pool, funded):
        events = []
        launchpad.accounts.subscribe(events.append)
        with pytest.raises(InsufficientBalance):
            launchpad.buy(BOB, TOKEN, ONE)
        assert events == []
        launchpad.buy(ALICE, TOKEN, ONE)
        assert len(events) == 1
        assert events[0].reserve_collected == ONE

    def test_sold_out_curve(self, launchpad, pool, funded):
        result = launchpad.buy(ALICE, TOKEN, 500 * ONE)
        assert result.amount_out == TOTAL_SUPPLY
        assert result.amount_in < 500 * ONE
        assert launchpad.settlement.balance_of(ALICE, WETH) == 1000 * ONE - result.amount_in
        assert_conserved(launchpad)
