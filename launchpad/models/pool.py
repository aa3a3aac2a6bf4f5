"""Pool account and transition configuration models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, TypeAlias

from launchpad.errors import ValidationError


class Lifecycle(str, Enum):
    """Pool lifecycle. The only transition is ACTIVE -> TRANSITIONED."""

    ACTIVE = "active"
    TRANSITIONED = "transitioned"


@dataclass(frozen=True)
class PercentageTransition:
    """Migrate once circulating supply reaches threshold_bps of total supply."""

    kind: ClassVar[str] = "percentage"

    threshold_bps: int

    def __post_init__(self) -> None:
        if not 0 < self.threshold_bps <= 10_000:
            raise ValidationError(f"threshold_bps must be in (0, 10000], got {self.threshold_bps}")

    @property
    def threshold(self) -> int:
        return self.threshold_bps


@dataclass(frozen=True)
class PriceTransition:
    """Migrate once the last price (18-decimal) reaches threshold_price."""

    kind: ClassVar[str] = "price"

    threshold_price: int

    def __post_init__(self) -> None:
        if self.threshold_price <= 0:
            raise ValidationError(f"threshold_price must be positive, got {self.threshold_price}")

    @property
    def threshold(self) -> int:
        return self.threshold_price


@dataclass(frozen=True)
class TimeTransition:
    """Migrate once the clock reaches threshold_timestamp (unix seconds)."""

    kind: ClassVar[str] = "time"

    threshold_timestamp: int

    def __post_init__(self) -> None:
        if self.threshold_timestamp < 0:
            raise ValidationError(
                f"threshold_timestamp must be non-negative, got {self.threshold_timestamp}"
            )

    @property
    def threshold(self) -> int:
        return self.threshold_timestamp


TransitionConfig: TypeAlias = PercentageTransition | PriceTransition | TimeTransition

_TRANSITION_KINDS: dict[str, type[PercentageTransition | PriceTransition | TimeTransition]] = {
    PercentageTransition.kind: PercentageTransition,
    PriceTransition.kind: PriceTransition,
    TimeTransition.kind: TimeTransition,
}


def make_transition(kind: str, threshold: int) -> TransitionConfig:
    """Build a transition config from a kind name and threshold.

    Raises:
        ValidationError: If the kind is unknown or the threshold invalid
    """
    try:
        cls = _TRANSITION_KINDS[kind.lower()]
    except KeyError:
        raise ValidationError(f"Unknown transition kind: {kind}") from None
    return cls(threshold)


@dataclass(frozen=True)
class PoolAccount:
    """Economic state of one launched token.

    Instances are immutable; the pool authority swaps in a new instance for
    every accepted mutation.
    """

    token: str
    reserve_asset: str
    creator: str
    total_supply: int
    circulating_supply: int
    reserve_collected: int
    last_price: int
    strategy_id: str
    transition: TransitionConfig
    lifecycle: Lifecycle = Lifecycle.ACTIVE
    transition_price: int = 0
    created_at: int = 0

    @property
    def pool_id(self) -> str:
        return self.token

    @property
    def is_transitioned(self) -> bool:
        return self.lifecycle is Lifecycle.TRANSITIONED

    @property
    def pool_held_supply(self) -> int:
        """Tokens still held by the pool (not yet released to buyers)."""
        return self.total_supply - self.circulating_supply


@dataclass(frozen=True)
class PoolStateChanged:
    """Notification emitted on every accepted pool mutation."""

    pool_id: str
    circulating_supply: int
    reserve_collected: int
    last_price: int
    lifecycle: Lifecycle
