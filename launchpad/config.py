"""Configuration for the launchpad core.

Frozen dataclasses with module-level defaults. Each can be built from
LAUNCHPAD_* environment variables for the HTTP server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from launchpad.constants import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MIN_TOKEN_UNIT,
    DEFAULT_TOLERANCE_BPS,
    WETH,
)
from launchpad.models.types import normalize_address


@dataclass(frozen=True)
class SolverPolicy:
    """Tolerance policy shared by every exact-amount solve.

    Attributes:
        tolerance_bps: Relative tolerance for early termination (1 = 0.01%)
        max_iterations: Refinement iteration cap
        min_token_unit: Token amount substituted when a non-zero buy
            rounds to zero and the buyer's reserve covers it
    """

    tolerance_bps: int = DEFAULT_TOLERANCE_BPS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    min_token_unit: int = DEFAULT_MIN_TOKEN_UNIT

    def __post_init__(self) -> None:
        if self.tolerance_bps <= 0:
            raise ValueError(f"tolerance_bps must be positive, got {self.tolerance_bps}")
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.min_token_unit <= 0:
            raise ValueError(f"min_token_unit must be positive, got {self.min_token_unit}")

    @classmethod
    def from_env(cls) -> SolverPolicy:
        return cls(
            tolerance_bps=int(os.environ.get("LAUNCHPAD_TOLERANCE_BPS", DEFAULT_TOLERANCE_BPS)),
            max_iterations=int(
                os.environ.get("LAUNCHPAD_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS)
            ),
            min_token_unit=int(
                os.environ.get("LAUNCHPAD_MIN_TOKEN_UNIT", DEFAULT_MIN_TOKEN_UNIT)
            ),
        )


@dataclass(frozen=True)
class RiskGateConfig:
    """Risk oracle gating.

    Scores are 0-100. Strategy and token scores are risk scores (higher is
    riskier); the transition score is a readiness score (higher is readier).

    Attributes:
        enabled: If False every check passes
        require_assessment: If True an unassessed subject is rejected
        max_strategy_risk: Reject strategies scoring above this
        max_token_risk: Reject tokens scoring above this
        min_transition_score: Transition needs at least this readiness
    """

    enabled: bool = False
    require_assessment: bool = False
    max_strategy_risk: int = 70
    max_token_risk: int = 70
    min_transition_score: int = 50

    def __post_init__(self) -> None:
        for name in ("max_strategy_risk", "max_token_risk", "min_transition_score"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be in [0, 100], got {value}")


@dataclass(frozen=True)
class LaunchpadConfig:
    """Deployment-wide settings.

    Attributes:
        reserve_asset: Quote asset every pool trades against
        admin: Administrator identity allowed to mutate pool accounts
        policy: Solver tolerance policy
        risk: Risk gate configuration
    """

    reserve_asset: str = WETH
    admin: str = "launchpad:admin"
    policy: SolverPolicy = field(default_factory=SolverPolicy)
    risk: RiskGateConfig = field(default_factory=RiskGateConfig)

    @classmethod
    def from_env(cls) -> LaunchpadConfig:
        """Build configuration from LAUNCHPAD_* environment variables."""
        return cls(
            reserve_asset=normalize_address(
                os.environ.get("LAUNCHPAD_RESERVE_ASSET", WETH), validate=True
            ),
            admin=os.environ.get("LAUNCHPAD_ADMIN", "launchpad:admin"),
            policy=SolverPolicy.from_env(),
            risk=RiskGateConfig(
                enabled=os.environ.get("LAUNCHPAD_RISK_ENABLED", "false").lower()
                in ("true", "1", "yes"),
            ),
        )


# Default configuration instances
DEFAULT_POLICY = SolverPolicy()
DEFAULT_CONFIG = LaunchpadConfig()
