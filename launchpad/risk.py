"""Risk gating around an external risk oracle.

The oracle returns an Assessment per subject. Strategy and token scores are
risk scores (0-100, higher is riskier) and carry a flag for critical or
suspicious subjects. The transition score is a readiness score (higher is
readier) and its flag means "ready".

RiskGate turns verdicts into allow/reject decisions using RiskGateConfig.
A disabled gate, or an unassessed subject when assessment is not required,
always allows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import structlog

from launchpad.config import RiskGateConfig
from launchpad.errors import RiskRejected

logger = structlog.get_logger()


@dataclass(frozen=True)
class Assessment:
    """One oracle verdict.

    Attributes:
        assessed: Whether the oracle has an opinion at all
        score: 0-100
        flagged: critical (strategy), suspicious (token) or ready (transition)
    """

    assessed: bool = False
    score: int = 0
    flagged: bool = False


UNASSESSED = Assessment()


@runtime_checkable
class RiskOracle(Protocol):
    def assess_strategy(self, strategy_id: str) -> Assessment: ...

    def assess_token(self, pool_id: str) -> Assessment: ...

    def assess_transition(self, pool_id: str) -> Assessment: ...


@dataclass
class StaticRiskOracle:
    """Oracle answering from fixed tables; unknown subjects are unassessed."""

    strategies: dict[str, Assessment] = field(default_factory=dict)
    tokens: dict[str, Assessment] = field(default_factory=dict)
    transitions: dict[str, Assessment] = field(default_factory=dict)

    def assess_strategy(self, strategy_id: str) -> Assessment:
        return self.strategies.get(strategy_id, UNASSESSED)

    def assess_token(self, pool_id: str) -> Assessment:
        return self.tokens.get(pool_id.lower(), UNASSESSED)

    def assess_transition(self, pool_id: str) -> Assessment:
        return self.transitions.get(pool_id.lower(), UNASSESSED)


class RiskGate:
    """Applies RiskGateConfig thresholds to oracle verdicts."""

    def __init__(self, oracle: RiskOracle, config: RiskGateConfig | None = None) -> None:
        self.oracle = oracle
        self.config = config or RiskGateConfig(enabled=True)

    def check_strategy(self, strategy_id: str) -> None:
        """Raises RiskRejected if the strategy is critical or too risky."""
        if not self.config.enabled:
            return
        verdict = self.oracle.assess_strategy(strategy_id)
        self._check("strategy", strategy_id, verdict, self.config.max_strategy_risk)

    def check_token(self, pool_id: str) -> None:
        """Raises RiskRejected if the token is suspicious or too risky."""
        if not self.config.enabled:
            return
        verdict = self.oracle.assess_token(pool_id)
        self._check("token", pool_id, verdict, self.config.max_token_risk)

    def transition_ready(self, pool_id: str) -> bool:
        """Whether the oracle clears the pool for migration."""
        if not self.config.enabled:
            return True
        verdict = self.oracle.assess_transition(pool_id)
        if not verdict.assessed:
            return not self.config.require_assessment
        return verdict.flagged and verdict.score >= self.config.min_transition_score

    def _check(self, subject: str, subject_id: str, verdict: Assessment, max_risk: int) -> None:
        if not verdict.assessed:
            if self.config.require_assessment:
                self._reject(subject, subject_id, "unassessed", verdict)
            return
        if verdict.flagged:
            self._reject(subject, subject_id, "flagged", verdict)
        if verdict.score > max_risk:
            self._reject(subject, subject_id, f"score above {max_risk}", verdict)

    @staticmethod
    def _reject(subject: str, subject_id: str, reason: str, verdict: Assessment) -> None:
        logger.warning(
            "risk_rejected",
            subject=subject,
            subject_id=subject_id,
            reason=reason,
            score=verdict.score,
        )
        raise RiskRejected(f"Risk gate rejected {subject} {subject_id}: {reason}")
