"""Tests for the HTTP request/response models."""

import pytest
from pydantic import ValidationError

from launchpad.models.api import LaunchRequest, PoolInfo, TradeRequest
from launchpad.models.pool import PercentageTransition, PoolAccount
from launchpad.models.types import UINT256_MAX, normalize_address
from tests.helpers import INITIAL_PRICE, ONE, TOKEN, TOTAL_SUPPLY, WETH


class TestTradeRequest:
    def test_negative_amount_is_exact_input(self):
        request = TradeRequest(
            trader="alice", tokenIn=WETH, tokenOut=TOKEN, amountSpecified=-ONE
        )
        assert int(request.amount_specified) == -ONE

    def test_rejects_non_integer(self):
        with pytest.raises(ValidationError):
            TradeRequest(trader="alice", tokenIn=WETH, tokenOut=TOKEN, amountSpecified="1.5")


class TestLaunchRequest:
    def test_uint256_bounds(self):
        base = {
            "token": TOKEN,
            "creator": "creator",
            "transition": {"kind": "percentage", "threshold": "5000"},
        }
        with pytest.raises(ValidationError):
            LaunchRequest(**base, totalSupply="-1")
        with pytest.raises(ValidationError):
            LaunchRequest(**base, totalSupply=str(UINT256_MAX + 1))
        request = LaunchRequest(**base, totalSupply=str(TOTAL_SUPPLY))
        assert request.strategy_id == "exponential"
        assert request.premine == "0"

    def test_unknown_transition_kind(self):
        with pytest.raises(ValidationError):
            LaunchRequest(
                token=TOKEN,
                creator="creator",
                totalSupply="1",
                transition={"kind": "volume", "threshold": "1"},
            )


class TestPoolInfo:
    def test_from_account_uses_camel_case(self):
        pool = PoolAccount(
            token=TOKEN,
            reserve_asset=WETH,
            creator="creator",
            total_supply=TOTAL_SUPPLY,
            circulating_supply=5 * ONE,
            reserve_collected=2 * ONE,
            last_price=INITIAL_PRICE,
            strategy_id="exponential",
            transition=PercentageTransition(5_000),
        )
        data = PoolInfo.from_account(pool).model_dump(by_alias=True)
        assert data["circulatingSupply"] == str(5 * ONE)
        assert data["transitionKind"] == "percentage"
        assert data["transitionThreshold"] == "5000"
        assert data["lifecycle"] == "active"


class TestNormalizeAddress:
    def test_adds_prefix_and_lowercases(self):
        assert normalize_address("ABCDEFABCDEFABCDEFABCDEFABCDEFABCDEFABCD") == "0x" + "abcdef" * 6 + "abcd"

    def test_validate(self):
        with pytest.raises(ValueError):
            normalize_address("0x12", validate=True)
