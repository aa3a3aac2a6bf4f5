"""Pydantic request/response models for the launchpad HTTP API.

Amounts travel as decimal strings so uint256 values survive JSON.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from launchpad.models.pool import PoolAccount
from launchpad.models.types import Address, Int256, Uint256


class TransitionSpec(BaseModel):
    """Migration condition: percentage (bps), price (18-decimal) or time (unix)."""

    kind: Literal["percentage", "price", "time"]
    threshold: Uint256


class CurveParamsModel(BaseModel):
    initial_price: Uint256 = Field(alias="initialPrice")
    steepness: Uint256 = Field(default="0")
    max_price_factor: Uint256 = Field(default="0", alias="maxPriceFactor")
    midpoint: Uint256 = Field(default="0")

    model_config = {"populate_by_name": True}


class LaunchRequest(BaseModel):
    """Launch a token on a bonding curve.

    Curve params come either as fields or as hex-encoded packed uint256
    words in `encodedParams`.
    """

    token: Address
    creator: str
    total_supply: Uint256 = Field(alias="totalSupply")
    premine: Uint256 = Field(default="0")
    strategy_id: str = Field(default="exponential", alias="strategyId")
    transition: TransitionSpec
    params: CurveParamsModel | None = None
    encoded_params: str | None = Field(default=None, alias="encodedParams")

    model_config = {"populate_by_name": True}


class TradeRequest(BaseModel):
    """One swap. Negative amountSpecified is exact input, positive exact output."""

    trader: str
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount_specified: Int256 = Field(alias="amountSpecified")

    model_config = {"populate_by_name": True}


class LiquidityRequest(BaseModel):
    depositor: str
    asset: Address
    amount: Uint256


class PoolInfo(BaseModel):
    pool_id: Address = Field(alias="poolId")
    token: Address
    reserve_asset: Address = Field(alias="reserveAsset")
    creator: str
    total_supply: Uint256 = Field(alias="totalSupply")
    circulating_supply: Uint256 = Field(alias="circulatingSupply")
    reserve_collected: Uint256 = Field(alias="reserveCollected")
    last_price: Uint256 = Field(alias="lastPrice")
    strategy_id: str = Field(alias="strategyId")
    transition_kind: str = Field(alias="transitionKind")
    transition_threshold: Uint256 = Field(alias="transitionThreshold")
    lifecycle: str
    transition_price: Uint256 = Field(alias="transitionPrice")
    created_at: int = Field(alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_account(cls, pool: PoolAccount) -> PoolInfo:
        return cls(
            pool_id=pool.pool_id,
            token=pool.token,
            reserve_asset=pool.reserve_asset,
            creator=pool.creator,
            total_supply=pool.total_supply,
            circulating_supply=pool.circulating_supply,
            reserve_collected=pool.reserve_collected,
            last_price=pool.last_price,
            strategy_id=pool.strategy_id,
            transition_kind=pool.transition.kind,
            transition_threshold=pool.transition.threshold,
            lifecycle=pool.lifecycle.value,
            transition_price=pool.transition_price,
            created_at=pool.created_at,
        )


class PriceResponse(BaseModel):
    pool_id: Address = Field(alias="poolId")
    price: Uint256

    model_config = {"populate_by_name": True}


class CanTransitionResponse(BaseModel):
    pool_id: Address = Field(alias="poolId")
    can_transition: bool = Field(alias="canTransition")

    model_config = {"populate_by_name": True}


class TransitionResponse(BaseModel):
    pool_id: Address = Field(alias="poolId")
    transitioned: bool
    transition_price: Uint256 = Field(alias="transitionPrice")

    model_config = {"populate_by_name": True}


class TradeResponse(BaseModel):
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")
    new_price: Uint256 = Field(alias="newPrice")
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    transitioned: bool

    model_config = {"populate_by_name": True}


class LiquidityResponse(BaseModel):
    pool_id: Address = Field(alias="poolId")
    depositor: str
    asset: Address
    balance: Uint256

    model_config = {"populate_by_name": True}
