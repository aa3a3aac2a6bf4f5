"""Launchpad error classes.

Every failure raised by the core derives from LaunchpadError. Calls are
all-or-nothing: when one of these escapes an entry point, no pool, ledger or
settlement state from that call is left behind.
"""


class LaunchpadError(Exception):
    """Base error for launchpad operations."""

    pass


class ValidationError(LaunchpadError):
    """Zero or invalid amounts, unknown pools, bad parameters."""

    pass


class InvalidTokenPath(ValidationError):
    """Neither side of the trading pair matches the pool's token/reserve pair."""

    pass


class UnknownPool(ValidationError):
    """No pool is registered under the given id."""

    pass


class PoolAlreadyExists(ValidationError):
    """A pool has already been launched for this token."""

    pass


class UnknownStrategy(ValidationError):
    """No pricing strategy is registered under the given id."""

    pass


class StrategyAlreadyInitialized(ValidationError):
    """Curve parameters for a pool can only be set once."""

    pass


class InsufficientLiquidity(LaunchpadError):
    """Reserve owed (or liquidity withdrawn) exceeds what the pool holds."""

    pass


class InsufficientBalance(ValidationError):
    """A payer does not hold the amount a settlement transfer asks for."""

    pass


class AlreadyTransitioned(LaunchpadError):
    """The pool has migrated; curve trading and liquidity calls are closed."""

    pass


class NotYetTransitioned(LaunchpadError):
    """The operation needs a pool that has already migrated."""

    pass


class RiskRejected(LaunchpadError):
    """The risk oracle verdict failed a configured threshold."""

    pass


class CalculationFailed(LaunchpadError):
    """A pricing solve did not converge to a usable, non-degenerate amount."""

    pass


class Unauthorized(LaunchpadError):
    """Caller is not on the allow-list for this mutation."""

    pass


class ReentrancyError(LaunchpadError):
    """A state-mutating call re-entered a pool that is already mid-call."""

    pass


class MigrationFailed(LaunchpadError):
    """The external migration routine reported a failure."""

    pass


__all__ = [
    "LaunchpadError",
    "ValidationError",
    "InvalidTokenPath",
    "UnknownPool",
    "PoolAlreadyExists",
    "UnknownStrategy",
    "StrategyAlreadyInitialized",
    "InsufficientLiquidity",
    "InsufficientBalance",
    "AlreadyTransitioned",
    "NotYetTransitioned",
    "RiskRejected",
    "CalculationFailed",
    "Unauthorized",
    "ReentrancyError",
    "MigrationFailed",
]
