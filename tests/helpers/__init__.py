"""Test helpers module for shared test utilities.

- constants: Addresses, identities and reference curve amounts
- factories: Launchpad, params and pool factory functions
"""

from tests.helpers.constants import (
    ADMIN,
    ALICE,
    BOB,
    CREATOR,
    INITIAL_PRICE,
    ONE,
    STEEP_STEEPNESS,
    STEEPNESS,
    TOKEN,
    TOKEN_B,
    TOTAL_SUPPLY,
    USDC,
    WETH,
)
from tests.helpers.factories import FixedClock, fund, launch_pool, make_launchpad, make_params

__all__ = [
    # Constants
    "ADMIN",
    "ALICE",
    "BOB",
    "CREATOR",
    "INITIAL_PRICE",
    "ONE",
    "STEEP_STEEPNESS",
    "STEEPNESS",
    "TOKEN",
    "TOKEN_B",
    "TOTAL_SUPPLY",
    "USDC",
    "WETH",
    # Factories
    "FixedClock",
    "fund",
    "launch_pool",
    "make_launchpad",
    "make_params",
]
