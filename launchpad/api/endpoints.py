"""API endpoints for the launchpad.

Handlers are async and call the core synchronously, so every request runs
to completion on the event loop before the next one touches pool state.
"""

import structlog
from fastapi import APIRouter, Depends

from launchpad.errors import ValidationError
from launchpad.launchpad import Launchpad, get_default_launchpad
from launchpad.models.api import (
    CanTransitionResponse,
    LaunchRequest,
    LiquidityRequest,
    LiquidityResponse,
    PoolInfo,
    PriceResponse,
    TradeRequest,
    TradeResponse,
    TransitionResponse,
)
from launchpad.models.pool import make_transition
from launchpad.models.types import normalize_address
from launchpad.strategies.base import CurveParams

logger = structlog.get_logger()

router = APIRouter(prefix="/pools")


def get_launchpad() -> Launchpad:
    """Dependency provider for the launchpad instance.

    Override this in tests to inject a fresh launchpad:
        app.dependency_overrides[get_launchpad] = lambda: launchpad
    """
    return get_default_launchpad()


def _curve_params(request: LaunchRequest) -> CurveParams | bytes:
    if request.encoded_params is not None:
        try:
            return bytes.fromhex(request.encoded_params.removeprefix("0x"))
        except ValueError as e:
            raise ValidationError(f"encodedParams is not valid hex: {e}") from e
    if request.params is None:
        raise ValidationError("Either params or encodedParams is required")
    return CurveParams(
        initial_price=int(request.params.initial_price),
        steepness=int(request.params.steepness),
        total_supply=int(request.total_supply),
        max_price_factor=int(request.params.max_price_factor),
        midpoint=int(request.params.midpoint),
    )


@router.post("", status_code=201)
async def launch(
    request: LaunchRequest,
    launchpad: Launchpad = Depends(get_launchpad),
) -> PoolInfo:
    """Launch a token on a bonding curve."""
    logger.info("received_launch", token=request.token, strategy_id=request.strategy_id)
    pool = launchpad.launch(
        token=request.token,
        creator=request.creator,
        total_supply=int(request.total_supply),
        premine=int(request.premine),
        strategy_id=request.strategy_id,
        transition=make_transition(request.transition.kind, int(request.transition.threshold)),
        params=_curve_params(request),
    )
    return PoolInfo.from_account(pool)


@router.get("/{pool_id}")
async def get_pool(pool_id: str, launchpad: Launchpad = Depends(get_launchpad)) -> PoolInfo:
    return PoolInfo.from_account(launchpad.get_pool_info(pool_id))


@router.get("/{pool_id}/price")
async def get_price(pool_id: str, launchpad: Launchpad = Depends(get_launchpad)) -> PriceResponse:
    pool = launchpad.get_pool_info(pool_id)
    return PriceResponse(pool_id=pool.pool_id, price=launchpad.get_price(pool_id))


@router.get("/{pool_id}/can-transition")
async def can_transition(
    pool_id: str, launchpad: Launchpad = Depends(get_launchpad)
) -> CanTransitionResponse:
    pool = launchpad.get_pool_info(pool_id)
    return CanTransitionResponse(
        pool_id=pool.pool_id, can_transition=launchpad.can_transition(pool_id)
    )


@router.post("/{pool_id}/trades")
async def trade(
    pool_id: str,
    request: TradeRequest,
    launchpad: Launchpad = Depends(get_launchpad),
) -> TradeResponse:
    """Execute a swap. The pair is (tokenIn, tokenOut)."""
    result = launchpad.trade(
        request.trader,
        pool_id,
        (request.token_in, request.token_out),
        True,
        int(request.amount_specified),
    )
    return TradeResponse(
        amount_in=result.amount_in,
        amount_out=result.amount_out,
        new_price=result.new_price,
        token_in=result.token_in,
        token_out=result.token_out,
        transitioned=result.transitioned,
    )


@router.post("/{pool_id}/liquidity")
async def add_liquidity(
    pool_id: str,
    request: LiquidityRequest,
    launchpad: Launchpad = Depends(get_launchpad),
) -> LiquidityResponse:
    balance = launchpad.add_liquidity(
        request.depositor, pool_id, request.asset, int(request.amount)
    )
    return LiquidityResponse(
        pool_id=normalize_address(pool_id),
        depositor=request.depositor,
        asset=normalize_address(request.asset),
        balance=balance,
    )


@router.post("/{pool_id}/liquidity/withdraw")
async def remove_liquidity(
    pool_id: str,
    request: LiquidityRequest,
    launchpad: Launchpad = Depends(get_launchpad),
) -> LiquidityResponse:
    balance = launchpad.remove_liquidity(
        request.depositor, pool_id, request.asset, int(request.amount)
    )
    return LiquidityResponse(
        pool_id=normalize_address(pool_id),
        depositor=request.depositor,
        asset=normalize_address(request.asset),
        balance=balance,
    )


@router.post("/{pool_id}/transition")
async def trigger_transition(
    pool_id: str, launchpad: Launchpad = Depends(get_launchpad)
) -> TransitionResponse:
    """Migrate the pool if its condition holds; reports whether it migrated."""
    migrated = launchpad.trigger_transition(pool_id)
    pool = launchpad.get_pool_info(pool_id)
    return TransitionResponse(
        pool_id=pool.pool_id,
        transitioned=migrated,
        transition_price=pool.transition_price,
    )
