"""Protocol constants for the bonding-curve launchpad.

Centralizes well-known addresses and fixed pricing parameters.
"""

from launchpad.models.types import is_valid_address

# Prices, steepness and supply fractions are integers scaled by 1e18
PRICE_SCALE = 10**18

# Percentage transition thresholds are expressed in basis points
BPS_DENOMINATOR = 10_000

# exp(steepness * fraction) must stay inside the fixed-point exp domain for
# every fraction in [0, 1]; sigmoid arguments use the same bound
MAX_STEEPNESS = 40 * PRICE_SCALE

# Exact-amount solves: one policy for every call site
# (relative tolerance 0.01%, at most 16 refinement iterations)
DEFAULT_TOLERANCE_BPS = 1
DEFAULT_MAX_ITERATIONS = 16

# Smallest token amount substituted when a non-zero buy rounds to zero
DEFAULT_MIN_TOKEN_UNIT = 1

# Sigmoid defaults for zero optional parameters
DEFAULT_MAX_PRICE_FACTOR = 10 * PRICE_SCALE  # 10.0
DEFAULT_SIGMOID_STEEPNESS = 10 * PRICE_SCALE  # 10.0
DEFAULT_MIDPOINT = PRICE_SCALE // 2  # 0.5 (50%)

# Strategy identifiers registered by default
EXPONENTIAL_STRATEGY_ID = "exponential"
SIGMOID_STRATEGY_ID = "sigmoid"
STRATEGY_TYPE = "BondingCurve"

# Caller identities
SWAP_ENGINE_IDENTITY = "launchpad:swap-engine"
LIQUIDITY_LEDGER_IDENTITY = "launchpad:liquidity-ledger"
POOL_VAULT = "launchpad:vault"


def _validate_token_address(name: str, address: str) -> str:
    """Validate and return a token address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Default reserve asset (WETH on mainnet, lowercase for consistency)
WETH = _validate_token_address("WETH", "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
