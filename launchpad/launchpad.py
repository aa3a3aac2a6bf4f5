"""Launchpad facade: the caller surface of the bonding-curve core.

The Launchpad wires the pool account store, the strategy registry, the swap
engine, the liquidity ledger and the optional risk gate together, and
exposes launch, trade, liquidity and view operations.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from launchpad.atomic import UnitOfWork
from launchpad.config import DEFAULT_CONFIG, LaunchpadConfig
from launchpad.constants import LIQUIDITY_LEDGER_IDENTITY, SWAP_ENGINE_IDENTITY
from launchpad.engine import SwapEngine, TradeResult
from launchpad.errors import NotYetTransitioned, ValidationError
from launchpad.models.pool import PoolAccount, TransitionConfig
from launchpad.models.types import normalize_address
from launchpad.pools.accounts import PoolAccounts
from launchpad.pools.liquidity import LiquidityLedger
from launchpad.risk import RiskGate, RiskOracle
from launchpad.settlement import InMemorySettlement, Settlement
from launchpad.strategies.base import CurveParams
from launchpad.strategies.registry import StrategyRegistry, build_default_registry
from launchpad.transition import (
    Clock,
    Migrator,
    RecordingMigrator,
    TransitionEvaluator,
    system_clock,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class TransitionSnapshot:
    """Pool state frozen at migration."""

    pool_id: str
    transition_price: int
    token_reserve: int
    reserve_amount: int


class Launchpad:
    """Entry point for launching and trading bonding-curve tokens.

    Args:
        config: Deployment settings (reserve asset, admin, solver policy, risk)
        settlement: Asset mover; defaults to an in-memory settlement
        migrator: Downstream AMM migration routine
        risk_oracle: Oracle consulted when config.risk.enabled is set
        clock: Unix-seconds clock used for launch times and time transitions
        strategies: Strategy registry; defaults to exponential + sigmoid
    """

    def __init__(
        self,
        config: LaunchpadConfig = DEFAULT_CONFIG,
        settlement: Settlement | None = None,
        migrator: Migrator | None = None,
        risk_oracle: RiskOracle | None = None,
        clock: Clock = system_clock,
        strategies: StrategyRegistry | None = None,
    ) -> None:
        self.config = config
        self.owner = config.admin
        self.settlement = settlement if settlement is not None else InMemorySettlement()
        self.migrator = migrator if migrator is not None else RecordingMigrator()
        self.clock = clock
        self.strategies = strategies or build_default_registry(self.owner, config.policy)

        self.risk_gate: RiskGate | None = None
        if risk_oracle is not None and config.risk.enabled:
            self.risk_gate = RiskGate(risk_oracle, config.risk)

        self.accounts = PoolAccounts(
            config.reserve_asset,
            allowed_callers={SWAP_ENGINE_IDENTITY, LIQUIDITY_LEDGER_IDENTITY, config.admin},
        )
        self.unit_of_work = UnitOfWork(self.accounts)
        self.evaluator = TransitionEvaluator(clock)
        self.liquidity = LiquidityLedger(
            self.accounts,
            self.strategies,
            self.settlement,
            self.unit_of_work,
            risk_gate=self.risk_gate,
        )
        self.engine = SwapEngine(
            self.accounts,
            self.strategies,
            self.settlement,
            self.evaluator,
            self.migrator,
            self.unit_of_work,
            risk_gate=self.risk_gate,
        )
        for participant in (self.strategies, self.liquidity, self.settlement, self.migrator):
            self.unit_of_work.enlist(participant)

    @property
    def reserve_asset(self) -> str:
        return self.accounts.reserve_asset

    # --- Mutations ---

    def launch(
        self,
        token: str,
        creator: str,
        total_supply: int,
        premine: int,
        strategy_id: str,
        transition: TransitionConfig,
        params: CurveParams | bytes,
    ) -> PoolAccount:
        """Launch a token on a bonding curve.

        The curve params' total supply must match total_supply. The premine
        is issued to the creator and the rest to the pool vault.

        Raises:
            ValidationError: Bad supply, premine, params or address
            PoolAlreadyExists: The token already has a pool
            UnknownStrategy: No strategy registered under strategy_id
            RiskRejected: The risk gate rejected the strategy
        """
        try:
            pool_id = normalize_address(token, validate=True)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        strategy = self.strategies.get(strategy_id)
        with self.unit_of_work(pool_id):
            if self.risk_gate is not None:
                self.risk_gate.check_strategy(strategy_id)
            if isinstance(params, bytes):
                params = CurveParams.decode(params)
            if params.total_supply != total_supply:
                raise ValidationError(
                    f"Curve total supply {params.total_supply} != token supply {total_supply}"
                )
            pool = self.accounts.initialize(
                self.owner,
                pool_id,
                creator,
                total_supply,
                premine,
                strategy_id,
                transition,
                initial_price=params.initial_price,
                created_at=self.clock(),
            )
            stored = strategy.initialize(self.owner, pool_id, params)
            if premine:
                self.settlement.issue(creator, pool_id, premine)
            if total_supply > premine:
                self.settlement.issue(self.settlement.vault, pool_id, total_supply - premine)

        logger.info(
            "pool_launched",
            pool_id=pool_id,
            creator=creator,
            strategy=strategy.name,
            initial_price=stored.initial_price,
            total_supply=total_supply,
            premine=premine,
        )
        return pool

    def trade(
        self,
        trader: str,
        pool_id: str,
        pair: tuple[str, str],
        zero_for_one: bool,
        amount_specified: int,
    ) -> TradeResult:
        """Trade against a pool; see SwapEngine.swap for the amount convention."""
        return self.engine.swap(trader, pool_id, pair, zero_for_one, amount_specified)

    def buy(self, trader: str, pool_id: str, reserve_in: int) -> TradeResult:
        """Exact-input buy: spend reserve_in of the reserve asset."""
        return self.trade(trader, pool_id, (self.reserve_asset, pool_id), True, -reserve_in)

    def sell(self, trader: str, pool_id: str, tokens_in: int) -> TradeResult:
        """Exact-input sell: sell tokens_in pool tokens."""
        return self.trade(trader, pool_id, (pool_id, self.reserve_asset), True, -tokens_in)

    def add_liquidity(self, depositor: str, pool_id: str, asset: str, amount: int) -> int:
        return self.liquidity.deposit(depositor, pool_id, asset, amount)

    def remove_liquidity(self, depositor: str, pool_id: str, asset: str, amount: int) -> int:
        return self.liquidity.withdraw(depositor, pool_id, asset, amount)

    def trigger_transition(self, pool_id: str) -> bool:
        """Migrate a pool whose condition holds without waiting for a trade."""
        return self.engine.try_transition(pool_id)

    # --- Views ---

    def get_pool_info(self, pool_id: str) -> PoolAccount:
        return self.accounts.get(pool_id)

    def get_price(self, pool_id: str) -> int:
        """Frozen transition price after migration, else the live curve price."""
        pool = self.accounts.get(pool_id)
        return self.strategies.get(pool.strategy_id).current_price(pool)

    def can_transition(self, pool_id: str) -> bool:
        """Whether the pool's condition holds and the risk gate clears it."""
        pool = self.accounts.get(pool_id)
        if not self.evaluator.can_transition(pool):
            return False
        return self.risk_gate is None or self.risk_gate.transition_ready(pool.pool_id)

    def transition_snapshot(self, pool_id: str) -> TransitionSnapshot:
        """Pool state recorded at migration.

        Raises:
            NotYetTransitioned: If the pool is still on its curve
        """
        pool = self.accounts.get(pool_id)
        if not pool.is_transitioned:
            raise NotYetTransitioned(f"Pool {pool.pool_id} has not transitioned")
        return TransitionSnapshot(
            pool_id=pool.pool_id,
            transition_price=pool.transition_price,
            token_reserve=pool.pool_held_supply,
            reserve_amount=pool.reserve_collected,
        )


_default_launchpad: Launchpad | None = None


def get_default_launchpad() -> Launchpad:
    """Process-wide launchpad configured from LAUNCHPAD_* environment variables."""
    global _default_launchpad
    if _default_launchpad is None:
        _default_launchpad = Launchpad(LaunchpadConfig.from_env())
        logger.info(
            "launchpad_created",
            reserve_asset=_default_launchpad.reserve_asset,
            strategies=_default_launchpad.strategies.strategy_ids,
        )
    return _default_launchpad
