"""Bounded root search for monotonic curve integrals.

Exact-input buys and exact-reserve-out sells both need the token amount t at
which an increasing function f(t) (reserve paid or received) meets a target.
The search keeps a bracket [below, above] with f(below) <= target <= f(above)
and closes it from both ends with Newton steps that use the larger of the two
endpoint slopes (the curve price is the derivative). With the steepest slope
in the bracket a step from either end can never jump past the root, so both
endpoints improve every iteration. If the steps fail to halve the bracket a
bisection step is added.

Callers name the endpoint that is safe for their trade direction: `below`
never spends more than a buyer's budget, `above` never delivers less reserve
than requested. The search stops once that endpoint is within the relative
tolerance of the target, the bracket collapses, or the iteration cap is hit.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from launchpad.math.fixed_point import ONE_18

BPS_DENOMINATOR = 10_000


@dataclass(frozen=True)
class SearchResult:
    """Final bracket of a bounded search."""

    below: int
    above: int
    below_value: int
    above_value: int
    iterations: int
    converged: bool


def within_tolerance(value: int, target: int, tolerance_bps: int) -> bool:
    """True if value is within tolerance_bps of target (relative)."""
    return abs(value - target) * BPS_DENOMINATOR <= target * tolerance_bps


class _Bracket:
    """Mutable [lo, hi] bracket around the target.

    A candidate that hits the target exactly moves the safe endpoint.
    """

    __slots__ = ("f", "target", "safe_side", "lo", "hi", "f_lo", "f_hi")

    def __init__(
        self,
        f: Callable[[int], int],
        target: int,
        lo: int,
        hi: int,
        safe_side: Literal["below", "above"],
    ) -> None:
        self.f = f
        self.target = target
        self.safe_side = safe_side
        self.lo, self.f_lo = lo, f(lo)
        self.hi, self.f_hi = hi, f(hi)

    def probe(self, candidate: int) -> None:
        if not self.lo < candidate < self.hi:
            return
        value = self.f(candidate)
        if value < self.target or (value == self.target and self.safe_side == "below"):
            self.lo, self.f_lo = candidate, value
        else:
            self.hi, self.f_hi = candidate, value


def solve_increasing(
    f: Callable[[int], int],
    target: int,
    lo: int,
    hi: int,
    slope: Callable[[int], int],
    tolerance_bps: int,
    max_iterations: int,
    safe_side: Literal["below", "above"],
) -> SearchResult:
    """Search [lo, hi] for the t where increasing f(t) reaches target.

    Args:
        f: Increasing function of an integer amount
        target: Value to reach
        lo: Lower bound, f(lo) must be <= target
        hi: Upper bound, f(hi) must be >= target
        slope: Derivative of f at t as an 18-decimal fixed-point ratio
        tolerance_bps: Relative tolerance for early termination
        max_iterations: Iteration cap
        safe_side: Which endpoint the caller will use

    Returns:
        SearchResult with the final bracket. converged is False only when the
        cap was hit with the safe endpoint still outside the tolerance band.

    Raises:
        ValueError: If the bracket does not contain the target
    """
    b = _Bracket(f, target, lo, hi, safe_side)
    if b.f_lo > target or b.f_hi < target:
        raise ValueError(f"Target {target} not bracketed by [{b.f_lo}, {b.f_hi}]")

    def settled() -> bool:
        if b.hi - b.lo <= 1:
            return True
        safe_value = b.f_lo if safe_side == "below" else b.f_hi
        return within_tolerance(safe_value, target, tolerance_bps)

    iterations = 0
    while iterations < max_iterations and not settled():
        iterations += 1
        width = b.hi - b.lo
        rate = max(slope(b.lo), slope(b.hi))
        if rate > 0:
            b.probe(b.lo + (target - b.f_lo) * ONE_18 // rate)
            b.probe(b.hi - (b.f_hi - target) * ONE_18 // rate)
        if b.hi - b.lo > width // 2:
            b.probe(b.lo + (b.hi - b.lo) // 2)

    return SearchResult(
        below=b.lo,
        above=b.hi,
        below_value=b.f_lo,
        above_value=b.f_hi,
        iterations=iterations,
        converged=settled(),
    )
