"""Pricing strategy: curve math plus per-pool quoting.

A curve shape is anything implementing the Curve protocol (a price law and
its closed-form integral). PricingStrategy composes one curve with the solver
policy and the per-pool parameters, and turns the integral into the four
quote operations the swap engine needs:

- quote_buy: reserve in (exact) -> tokens out, solved by bounded search
- quote_sell: tokens in (exact) -> reserve out, closed form
- quote_exact_tokens_out: tokens out (exact) -> reserve in, closed form
- quote_exact_reserve_out: reserve out (exact) -> tokens in, bounded search

Rounding: a buy over [s, s + t] costs the floor integral plus one wei, a
sell over the same interval pays the floor integral. Buying and immediately
selling the same tokens therefore always returns strictly less reserve.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog
from eth_abi import decode, encode  # type: ignore[attr-defined]

from launchpad.config import DEFAULT_POLICY, SolverPolicy
from launchpad.constants import STRATEGY_TYPE
from launchpad.errors import (
    CalculationFailed,
    InsufficientLiquidity,
    StrategyAlreadyInitialized,
    Unauthorized,
    UnknownPool,
    ValidationError,
)
from launchpad.math.fixed_point import ONE_18
from launchpad.math.search import solve_increasing
from launchpad.safe_int import S

if TYPE_CHECKING:
    from launchpad.models.pool import PoolAccount

logger = structlog.get_logger()

# Packed parameter layout: five uint256 words
PARAMS_ABI_TYPES = ["uint256"] * 5


@dataclass(frozen=True)
class CurveParams:
    """Immutable per-pool curve configuration (18-decimal fixed point).

    max_price_factor and midpoint are only read by the sigmoid curve; zero
    means "use the curve default".
    """

    initial_price: int
    steepness: int
    total_supply: int
    max_price_factor: int = 0
    midpoint: int = 0

    def encode(self) -> bytes:
        """ABI-encode as packed uint256 words.

        Word order: initial price, max price factor, steepness, midpoint,
        total supply.
        """
        return encode(
            PARAMS_ABI_TYPES,
            [
                self.initial_price,
                self.max_price_factor,
                self.steepness,
                self.midpoint,
                self.total_supply,
            ],
        )

    @classmethod
    def decode(cls, data: bytes) -> CurveParams:
        """Decode packed uint256 words (see encode).

        Raises:
            ValidationError: If fewer than five words are supplied
        """
        if len(data) < 32 * len(PARAMS_ABI_TYPES):
            raise ValidationError("Invalid parameters - not enough data")
        initial_price, max_price_factor, steepness, midpoint, total_supply = decode(
            PARAMS_ABI_TYPES, data[: 32 * len(PARAMS_ABI_TYPES)]
        )
        return cls(
            initial_price=initial_price,
            steepness=steepness,
            total_supply=total_supply,
            max_price_factor=max_price_factor,
            midpoint=midpoint,
        )


@dataclass(frozen=True)
class Quote:
    """Result of a quote.

    Attributes:
        tokens: Pool tokens moved by the trade
        reserve: Reserve asset moved by the trade
        new_price: Curve price after the trade (18-decimal)
    """

    tokens: int
    reserve: int
    new_price: int


@runtime_checkable
class Curve(Protocol):
    """A bonding-curve shape.

    Implementations must be monotonic: price(s1) <= price(s2) for s1 < s2,
    and integral(s0, s1) must be non-decreasing in s1.
    """

    name: str

    def normalize(self, params: CurveParams) -> CurveParams:
        """Validate params and fill curve defaults.

        Raises:
            ValidationError: If the params cannot describe a valid curve
        """
        ...

    def price(self, params: CurveParams, supply: int) -> int:
        """Price at the given circulating supply (reserve per whole token)."""
        ...

    def integral(self, params: CurveParams, start: int, end: int) -> int:
        """Reserve (floor) for the supply interval [start, end]."""
        ...


class PricingStrategy:
    """Quoting for every pool that selected this strategy.

    Per-pool params are set exactly once through initialize(), which only the
    owner identity (the launchpad) may call.
    """

    strategy_type = STRATEGY_TYPE

    def __init__(
        self,
        curve: Curve,
        owner: str,
        policy: SolverPolicy = DEFAULT_POLICY,
    ) -> None:
        self.curve = curve
        self.owner = owner
        self.policy = policy
        self._params: dict[str, CurveParams] = {}

    @property
    def name(self) -> str:
        return self.curve.name

    # --- Configuration ---

    def initialize(self, caller: str, pool_id: str, params: CurveParams | bytes) -> CurveParams:
        """Set the immutable curve params for a pool.

        Args:
            caller: Identity of the caller, must be the strategy owner
            pool_id: Pool being configured
            params: CurveParams or their packed ABI encoding

        Returns:
            The normalized params that were stored

        Raises:
            Unauthorized: If caller is not the owner
            StrategyAlreadyInitialized: If the pool already has params
            ValidationError: If the params are invalid
        """
        if caller != self.owner:
            raise Unauthorized(f"{caller} cannot initialize strategy {self.name}")
        if pool_id in self._params:
            raise StrategyAlreadyInitialized(f"Pool {pool_id} already initialized")
        if isinstance(params, bytes):
            params = CurveParams.decode(params)

        normalized = self.curve.normalize(params)
        self._params[pool_id] = normalized
        logger.info(
            "strategy_initialized",
            strategy=self.name,
            pool_id=pool_id,
            initial_price=normalized.initial_price,
            steepness=normalized.steepness,
            total_supply=normalized.total_supply,
        )
        return normalized

    def params_for(self, pool_id: str) -> CurveParams:
        """Return a pool's params.

        Raises:
            UnknownPool: If the pool was never initialized with this strategy
        """
        try:
            return self._params[pool_id]
        except KeyError:
            raise UnknownPool(f"Pool {pool_id} not initialized for {self.name}") from None

    def snapshot(self) -> dict[str, CurveParams]:
        return dict(self._params)

    def restore(self, state: dict[str, CurveParams]) -> None:
        self._params = dict(state)

    # --- Views ---

    def price(self, pool_id: str, supply: int) -> int:
        """Curve price at a given circulating supply."""
        return self.curve.price(self.params_for(pool_id), supply)

    def current_price(self, pool: PoolAccount) -> int:
        """Frozen transition price after migration, else the live curve price."""
        if pool.is_transitioned:
            return pool.transition_price
        return self.price(pool.pool_id, pool.circulating_supply)

    def _buy_cost(self, params: CurveParams, supply: int, tokens: int) -> int:
        if tokens <= 0:
            return 0
        return self.curve.integral(params, supply, supply + tokens) + 1

    def _sell_proceeds(self, params: CurveParams, supply: int, tokens: int) -> int:
        if tokens <= 0:
            return 0
        return self.curve.integral(params, supply - tokens, supply)

    # --- Quotes ---

    def quote_buy(self, pool_id: str, current_supply: int, reserve_in: int) -> Quote:
        """Tokens received for an exact reserve input.

        Output is clamped to the supply left on the curve; when clamped, the
        quote's reserve is the cost of the remaining supply only.

        Raises:
            ValidationError: If reserve_in is not positive
            InsufficientLiquidity: If the curve has no supply left
            CalculationFailed: If the solve does not converge or rounds to zero
        """
        if reserve_in <= 0:
            raise ValidationError(f"Reserve input must be positive, got {reserve_in}")
        params = self.params_for(pool_id)
        remaining = (S(params.total_supply) - current_supply).value
        if remaining == 0:
            raise InsufficientLiquidity(f"No supply left on the curve for {pool_id}")

        def cost(t: int) -> int:
            return self._buy_cost(params, current_supply, t)

        full_cost = cost(remaining)
        if full_cost <= reserve_in:
            return Quote(
                tokens=remaining,
                reserve=full_cost,
                new_price=self.curve.price(params, params.total_supply),
            )

        start_price = self.curve.price(params, current_supply)
        hi = min(remaining, (S(reserve_in) * ONE_18).ceiling_div(start_price).value)
        if cost(hi) < reserve_in:
            hi = remaining
        lo = (S(reserve_in) * ONE_18 // self.curve.price(params, current_supply + hi)).value
        if lo >= hi or cost(lo) > reserve_in:
            lo = 0

        result = solve_increasing(
            cost,
            reserve_in,
            lo,
            hi,
            slope=lambda t: self.curve.price(params, current_supply + t),
            tolerance_bps=self.policy.tolerance_bps,
            max_iterations=self.policy.max_iterations,
            safe_side="below",
        )
        if not result.converged:
            raise CalculationFailed(
                f"Buy solve did not converge in {result.iterations} iterations "
                f"(pool={pool_id}, reserve_in={reserve_in})"
            )

        tokens = result.below
        if tokens == 0:
            tokens = self._minimum_unit(pool_id, start_price, remaining, reserve_in)

        new_price = self.curve.price(params, current_supply + tokens)
        logger.debug(
            "quote_buy",
            pool_id=pool_id,
            reserve_in=reserve_in,
            tokens_out=tokens,
            iterations=result.iterations,
        )
        return Quote(tokens=tokens, reserve=reserve_in, new_price=new_price)

    def _minimum_unit(self, pool_id: str, price: int, remaining: int, reserve_in: int) -> int:
        """Substitute the minimum token unit for a buy that rounded to zero.

        Only legitimate when the buyer's reserve pays for the unit at the
        current price.
        """
        unit = self.policy.min_token_unit
        if unit <= remaining and reserve_in * ONE_18 >= price * unit:
            logger.debug("quote_buy_min_unit", pool_id=pool_id, reserve_in=reserve_in, unit=unit)
            return unit
        raise CalculationFailed(
            f"Reserve input {reserve_in} buys zero tokens at price {price} (pool={pool_id})"
        )

    def quote_sell(self, pool_id: str, current_supply: int, tokens_in: int) -> Quote:
        """Reserve received for an exact token input.

        Raises:
            ValidationError: If tokens_in is not positive or exceeds circulating supply
            CalculationFailed: If the proceeds round to zero
        """
        if tokens_in <= 0:
            raise ValidationError(f"Token input must be positive, got {tokens_in}")
        if tokens_in > current_supply:
            raise ValidationError(
                f"Cannot sell {tokens_in} tokens, circulating supply is {current_supply}"
            )
        params = self.params_for(pool_id)
        reserve_out = self._sell_proceeds(params, current_supply, tokens_in)
        if reserve_out == 0:
            raise CalculationFailed(f"Selling {tokens_in} tokens yields zero reserve")

        new_supply = current_supply - tokens_in
        return Quote(
            tokens=tokens_in,
            reserve=reserve_out,
            new_price=self.curve.price(params, new_supply),
        )

    def quote_exact_tokens_out(self, pool_id: str, current_supply: int, tokens_out: int) -> Quote:
        """Reserve needed to buy an exact token amount.

        Raises:
            ValidationError: If tokens_out is not positive or exceeds remaining supply
        """
        if tokens_out <= 0:
            raise ValidationError(f"Token output must be positive, got {tokens_out}")
        params = self.params_for(pool_id)
        remaining = (S(params.total_supply) - current_supply).value
        if tokens_out > remaining:
            raise ValidationError(
                f"Cannot buy {tokens_out} tokens, only {remaining} left on the curve"
            )
        reserve_in = self._buy_cost(params, current_supply, tokens_out)
        return Quote(
            tokens=tokens_out,
            reserve=reserve_in,
            new_price=self.curve.price(params, current_supply + tokens_out),
        )

    def quote_exact_reserve_out(self, pool_id: str, current_supply: int, reserve_out: int) -> Quote:
        """Tokens to sell for an exact reserve output.

        The search never returns fewer tokens than needed: its safe endpoint
        yields at least reserve_out, so it is used even when the iteration
        cap is hit before the tolerance band.

        Raises:
            ValidationError: If reserve_out is not positive
            InsufficientLiquidity: If selling every circulating token falls short
        """
        if reserve_out <= 0:
            raise ValidationError(f"Reserve output must be positive, got {reserve_out}")
        params = self.params_for(pool_id)

        def proceeds(t: int) -> int:
            return self._sell_proceeds(params, current_supply, t)

        if current_supply == 0 or proceeds(current_supply) < reserve_out:
            raise InsufficientLiquidity(
                f"Selling all {current_supply} circulating tokens cannot yield {reserve_out}"
            )

        lo = (S(reserve_out) * ONE_18 // self.curve.price(params, current_supply)).value
        floor_price = self.curve.price(params, 0)
        hi = min(current_supply, (S(reserve_out) * ONE_18).ceiling_div(floor_price).value)
        if proceeds(hi) < reserve_out:
            hi = current_supply
        if lo >= hi or proceeds(lo) > reserve_out:
            lo = 0

        result = solve_increasing(
            proceeds,
            reserve_out,
            lo,
            hi,
            slope=lambda t: self.curve.price(params, current_supply - t),
            tolerance_bps=self.policy.tolerance_bps,
            max_iterations=self.policy.max_iterations,
            safe_side="above",
        )
        if not result.converged:
            # above_value >= reserve_out holds for every bracket the search keeps
            logger.warning(
                "quote_exact_reserve_out_unconverged",
                pool_id=pool_id,
                reserve_out=reserve_out,
                tokens_in=result.above,
                proceeds=result.above_value,
                iterations=result.iterations,
            )

        tokens_in = min(result.above, current_supply)
        logger.debug(
            "quote_exact_reserve_out",
            pool_id=pool_id,
            reserve_out=reserve_out,
            tokens_in=tokens_in,
            iterations=result.iterations,
        )
        return Quote(
            tokens=tokens_in,
            reserve=reserve_out,
            new_price=self.curve.price(params, current_supply - tokens_in),
        )
