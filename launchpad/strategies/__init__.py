"""Pricing strategies for bonding-curve pools.

A strategy is a curve shape (price law + closed-form integral) wrapped by
PricingStrategy, which owns per-pool params and produces quotes.

Available curves:
- ExponentialCurve: initial_price * e^(k * s / S)
- SigmoidCurve: logistic rise from initial_price toward a max price
"""

from launchpad.strategies.base import Curve, CurveParams, PricingStrategy, Quote
from launchpad.strategies.exponential import ExponentialCurve
from launchpad.strategies.registry import StrategyRegistry, build_default_registry
from launchpad.strategies.sigmoid import SigmoidCurve

__all__ = [
    "Curve",
    "CurveParams",
    "PricingStrategy",
    "Quote",
    "ExponentialCurve",
    "SigmoidCurve",
    "StrategyRegistry",
    "build_default_registry",
]
