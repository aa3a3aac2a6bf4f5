"""Mathematical utilities for curve pricing.

This package provides:
- fixed_point: 18-decimal fixed-point arithmetic, exp/ln (LogExpMath style)
- search: bounded root search used by the exact-amount quotes
"""

from launchpad.math.fixed_point import ONE_18, exp, ln
from launchpad.math.search import SearchResult, solve_increasing

__all__ = ["ONE_18", "exp", "ln", "SearchResult", "solve_increasing"]
