"""Registry of pricing strategies keyed by strategy id.

Pools store only a strategy id; every quote resolves it here.
"""

from __future__ import annotations

import structlog

from launchpad.config import DEFAULT_POLICY, SolverPolicy
from launchpad.constants import EXPONENTIAL_STRATEGY_ID, SIGMOID_STRATEGY_ID
from launchpad.errors import UnknownStrategy, ValidationError
from launchpad.strategies.base import CurveParams, PricingStrategy
from launchpad.strategies.exponential import ExponentialCurve
from launchpad.strategies.sigmoid import SigmoidCurve

logger = structlog.get_logger()


class StrategyRegistry:
    """Maps strategy ids to PricingStrategy instances."""

    def __init__(self, strategies: dict[str, PricingStrategy] | None = None) -> None:
        self._strategies: dict[str, PricingStrategy] = {}
        if strategies:
            for strategy_id, strategy in strategies.items():
                self.register(strategy_id, strategy)

    def register(self, strategy_id: str, strategy: PricingStrategy) -> None:
        """Register a strategy.

        Raises:
            ValidationError: If the id is already taken
        """
        if strategy_id in self._strategies:
            raise ValidationError(f"Strategy id already registered: {strategy_id}")
        self._strategies[strategy_id] = strategy
        logger.debug("strategy_registered", strategy_id=strategy_id, name=strategy.name)

    def get(self, strategy_id: str) -> PricingStrategy:
        """Look up a strategy.

        Raises:
            UnknownStrategy: If no strategy is registered under the id
        """
        try:
            return self._strategies[strategy_id]
        except KeyError:
            raise UnknownStrategy(f"Unknown strategy: {strategy_id}") from None

    def __contains__(self, strategy_id: object) -> bool:
        return strategy_id in self._strategies

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self._strategies.items())

    @property
    def strategy_ids(self) -> list[str]:
        return list(self._strategies)

    def snapshot(self) -> dict[str, dict[str, CurveParams]]:
        return {sid: strategy.snapshot() for sid, strategy in self._strategies.items()}

    def restore(self, state: dict[str, dict[str, CurveParams]]) -> None:
        for sid, strategy in self._strategies.items():
            strategy.restore(state.get(sid, {}))


def build_default_registry(owner: str, policy: SolverPolicy = DEFAULT_POLICY) -> StrategyRegistry:
    """Registry with the exponential and sigmoid curves, both owned by owner."""
    return StrategyRegistry(
        {
            EXPONENTIAL_STRATEGY_ID: PricingStrategy(ExponentialCurve(), owner, policy),
            SIGMOID_STRATEGY_ID: PricingStrategy(SigmoidCurve(), owner, policy),
        }
    )
