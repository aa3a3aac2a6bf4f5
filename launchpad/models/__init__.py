"""Data models for launchpad pools and the HTTP surface."""

from launchpad.models.pool import (
    Lifecycle,
    PercentageTransition,
    PoolAccount,
    PoolStateChanged,
    PriceTransition,
    TimeTransition,
    TransitionConfig,
    make_transition,
)
from launchpad.models.types import Address, Int256, Uint256, normalize_address

__all__ = [
    # Types
    "Address",
    "Int256",
    "Uint256",
    "normalize_address",
    # Pool models
    "Lifecycle",
    "PoolAccount",
    "PoolStateChanged",
    "PercentageTransition",
    "PriceTransition",
    "TimeTransition",
    "TransitionConfig",
    "make_transition",
]
