"""Swap engine: one trade against one bonding-curve pool.

Each swap runs these steps inside a single unit of work:

1. Resolve: map the trading pair and direction onto (token_in, token_out)
2. Guard: ask the risk gate about the pool's strategy and token
3. Quote: buy or sell, exact input or exact output
4. Liquidity check: reserve owed to a seller must be covered
5. Settle: take the input from the trader, give the output
6. Record: write the new circulating supply, reserve and price
7. Maybe transition: migrate exactly once when the pool's condition holds

Amount sign convention (as in Uniswap V4 hooks): a negative amount_specified
is an exact input of token_in, a positive one an exact output of token_out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from launchpad.constants import SWAP_ENGINE_IDENTITY
from launchpad.errors import (
    AlreadyTransitioned,
    InsufficientLiquidity,
    InvalidTokenPath,
    MigrationFailed,
    ValidationError,
)
from launchpad.models.types import normalize_address

if TYPE_CHECKING:
    from launchpad.atomic import UnitOfWork
    from launchpad.models.pool import PoolAccount
    from launchpad.pools.accounts import PoolAccounts
    from launchpad.risk import RiskGate
    from launchpad.settlement import Settlement
    from launchpad.strategies.base import Quote
    from launchpad.strategies.registry import StrategyRegistry
    from launchpad.transition import Migrator, TransitionEvaluator

logger = structlog.get_logger()


@dataclass(frozen=True)
class TradeResult:
    """Outcome of one swap.

    Attributes:
        amount_in: Amount the pool took from the trader (of token_in)
        amount_out: Amount the pool gave the trader (of token_out)
        new_price: Curve price after the trade (18-decimal)
        token_in: Asset the trader paid
        token_out: Asset the trader received
        transitioned: Whether this trade triggered the pool's migration
    """

    amount_in: int
    amount_out: int
    new_price: int
    token_in: str
    token_out: str
    transitioned: bool = False

    @property
    def delta(self) -> dict[str, int]:
        """Trader-side balance change per asset; the pool side is its negation."""
        return {self.token_in: -self.amount_in, self.token_out: self.amount_out}


class SwapEngine:
    """Orchestrates trades; holds no persistent state of its own."""

    def __init__(
        self,
        accounts: PoolAccounts,
        strategies: StrategyRegistry,
        settlement: Settlement,
        evaluator: TransitionEvaluator,
        migrator: Migrator,
        unit_of_work: UnitOfWork,
        risk_gate: RiskGate | None = None,
        identity: str = SWAP_ENGINE_IDENTITY,
    ) -> None:
        self.accounts = accounts
        self.strategies = strategies
        self.settlement = settlement
        self.evaluator = evaluator
        self.migrator = migrator
        self.unit_of_work = unit_of_work
        self.risk_gate = risk_gate
        self.identity = identity

    def swap(
        self,
        trader: str,
        pool_id: str,
        pair: tuple[str, str],
        zero_for_one: bool,
        amount_specified: int,
    ) -> TradeResult:
        """Execute one trade.

        Args:
            trader: Identity paying the input and receiving the output
            pool_id: Pool to trade against
            pair: The two assets of the trade, in either order
            zero_for_one: True if pair[0] is paid in and pair[1] received
            amount_specified: Negative for exact input, positive for exact output

        Raises:
            ValidationError: Zero amount, unknown pool or bad quote input
            InvalidTokenPath: The pair does not match the pool's assets
            AlreadyTransitioned: The pool has migrated
            RiskRejected: The risk gate rejected the strategy or token
            InsufficientLiquidity: Reserve owed exceeds the pool's reserve
            CalculationFailed: A solve did not converge
            MigrationFailed: A triggered migration failed
            ReentrancyError: The pool is already mid-call
        """
        if amount_specified == 0:
            raise ValidationError("amount_specified must be non-zero")
        pool_id = normalize_address(pool_id)
        exact_input = amount_specified < 0
        amount = abs(amount_specified)

        with self.unit_of_work(pool_id):
            pool = self.accounts.get(pool_id)
            if pool.is_transitioned:
                raise AlreadyTransitioned(f"Pool {pool_id} has transitioned")
            token_in, token_out = self._resolve(pool, pair, zero_for_one)

            if self.risk_gate is not None:
                self.risk_gate.check_strategy(pool.strategy_id)
                self.risk_gate.check_token(pool.pool_id)

            is_buy = token_in == pool.reserve_asset
            quote = self._quote(pool, is_buy, exact_input, amount)

            if is_buy:
                amount_in, amount_out = quote.reserve, quote.tokens
                new_circulating = pool.circulating_supply + quote.tokens
                new_reserve = pool.reserve_collected + quote.reserve
            else:
                if quote.reserve > pool.reserve_collected:
                    raise InsufficientLiquidity(
                        f"Reserve owed {quote.reserve} exceeds collected "
                        f"{pool.reserve_collected} (pool={pool_id})"
                    )
                amount_in, amount_out = quote.tokens, quote.reserve
                new_circulating = pool.circulating_supply - quote.tokens
                new_reserve = pool.reserve_collected - quote.reserve

            self.settlement.take_from(trader, token_in, amount_in)
            self.settlement.give_to(trader, token_out, amount_out)

            updated = self.accounts.apply_trade(
                self.identity, pool_id, new_circulating, new_reserve, quote.new_price
            )
            transitioned = self._maybe_transition(updated)

        logger.info(
            "trade_executed",
            pool_id=pool_id,
            trader=trader,
            side="buy" if is_buy else "sell",
            exact_input=exact_input,
            amount_in=amount_in,
            amount_out=amount_out,
            new_price=quote.new_price,
            transitioned=transitioned,
        )
        return TradeResult(
            amount_in=amount_in,
            amount_out=amount_out,
            new_price=quote.new_price,
            token_in=token_in,
            token_out=token_out,
            transitioned=transitioned,
        )

    def try_transition(self, pool_id: str) -> bool:
        """Evaluate a pool outside a trade (e.g. after a time threshold).

        Raises:
            AlreadyTransitioned: If the pool has already migrated
            MigrationFailed: If the migration routine fails
        """
        pool_id = normalize_address(pool_id)
        with self.unit_of_work(pool_id):
            pool = self.accounts.get(pool_id)
            if pool.is_transitioned:
                raise AlreadyTransitioned(f"Pool {pool_id} has transitioned")
            return self._maybe_transition(pool)

    def _resolve(
        self, pool: PoolAccount, pair: tuple[str, str], zero_for_one: bool
    ) -> tuple[str, str]:
        asset0, asset1 = (normalize_address(asset) for asset in pair)
        if {asset0, asset1} != {pool.token, pool.reserve_asset}:
            raise InvalidTokenPath(
                f"Pair ({asset0}, {asset1}) does not match pool {pool.pool_id} "
                f"({pool.token}, {pool.reserve_asset})"
            )
        return (asset0, asset1) if zero_for_one else (asset1, asset0)

    def _quote(self, pool: PoolAccount, is_buy: bool, exact_input: bool, amount: int) -> Quote:
        strategy = self.strategies.get(pool.strategy_id)
        supply = pool.circulating_supply
        if is_buy and exact_input:
            return strategy.quote_buy(pool.pool_id, supply, amount)
        if is_buy:
            return strategy.quote_exact_tokens_out(pool.pool_id, supply, amount)
        if exact_input:
            return strategy.quote_sell(pool.pool_id, supply, amount)
        if amount > pool.reserve_collected:
            raise InsufficientLiquidity(
                f"Requested reserve {amount} exceeds collected {pool.reserve_collected}"
            )
        return strategy.quote_exact_reserve_out(pool.pool_id, supply, amount)

    def _maybe_transition(self, pool: PoolAccount) -> bool:
        if not self.evaluator.can_transition(pool):
            return False
        if self.risk_gate is not None and not self.risk_gate.transition_ready(pool.pool_id):
            logger.info("transition_deferred", pool_id=pool.pool_id, reason="risk_not_ready")
            return False

        try:
            self.migrator.migrate(
                pool.pool_id, pool.pool_held_supply, pool.reserve_collected, pool.last_price
            )
        except MigrationFailed:
            logger.warning("migration_failed", pool_id=pool.pool_id)
            raise
        except Exception as e:
            logger.warning("migration_failed", pool_id=pool.pool_id, error=str(e))
            raise MigrationFailed(f"Migration of {pool.pool_id} failed: {e}") from e

        self.accounts.mark_transitioned(self.identity, pool.pool_id, pool.last_price)
        return True
