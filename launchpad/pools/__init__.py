"""Pool accounting: the authoritative account store and the liquidity ledger."""

from launchpad.pools.accounts import PoolAccounts
from launchpad.pools.liquidity import LiquidityLedger

__all__ = ["PoolAccounts", "LiquidityLedger"]
