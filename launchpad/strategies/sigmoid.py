"""Sigmoid bonding curve.

price(s) = initial_price + (max_price - initial_price) * sigmoid(k * (s/S - midpoint))

with max_price = initial_price * max_price_factor. The price starts near
initial_price, rises fastest around the midpoint fraction of supply and
flattens toward max_price. At zero supply the price is exactly
initial_price.

The integral uses the softplus antiderivative of the logistic function:

    integral = initial_price * (s1 - s0) + S * range / k * (softplus(z1) - softplus(z0))
"""

from __future__ import annotations

from launchpad.constants import (
    DEFAULT_MAX_PRICE_FACTOR,
    DEFAULT_MIDPOINT,
    DEFAULT_SIGMOID_STEEPNESS,
    MAX_STEEPNESS,
)
from launchpad.errors import ValidationError
from launchpad.math.fixed_point import MIN_NATURAL_EXPONENT, ONE_18, exp, mul_down, softplus
from launchpad.strategies.base import CurveParams


def _logistic(z: int) -> int:
    """1 / (1 + e^-z) for a signed 18-decimal z."""
    if z >= 0:
        if -z < MIN_NATURAL_EXPONENT:
            return ONE_18
        return (ONE_18 * ONE_18) // (ONE_18 + exp(-z))
    if z < MIN_NATURAL_EXPONENT:
        return 0
    e = exp(z)
    return (e * ONE_18) // (ONE_18 + e)


class SigmoidCurve:
    """Curve implementation for the logistic price law."""

    name = "Sigmoid"

    def normalize(self, params: CurveParams) -> CurveParams:
        if params.initial_price <= 0:
            raise ValidationError("Invalid parameters - initial price must be positive")
        if params.total_supply <= 0:
            raise ValidationError("Invalid parameters - total supply must be positive")

        max_price_factor = params.max_price_factor or DEFAULT_MAX_PRICE_FACTOR
        steepness = params.steepness or DEFAULT_SIGMOID_STEEPNESS
        midpoint = params.midpoint or DEFAULT_MIDPOINT

        if min(max_price_factor, steepness, midpoint) < 0:
            raise ValidationError("Invalid parameters - values must be non-negative")
        if max_price_factor <= ONE_18:
            raise ValidationError("Invalid parameters - max price factor must exceed 1.0")
        if steepness > MAX_STEEPNESS:
            raise ValidationError(
                f"Invalid parameters - steepness {steepness} exceeds {MAX_STEEPNESS}"
            )
        if midpoint > ONE_18:
            raise ValidationError("Invalid parameters - midpoint must be within [0, 1]")

        return CurveParams(
            initial_price=params.initial_price,
            steepness=steepness,
            total_supply=params.total_supply,
            max_price_factor=max_price_factor,
            midpoint=midpoint,
        )

    @staticmethod
    def _price_range(params: CurveParams) -> int:
        return mul_down(params.initial_price, params.max_price_factor) - params.initial_price

    @staticmethod
    def _argument(params: CurveParams, supply: int) -> int:
        """k * (supply / S - midpoint) as signed 18-decimal."""
        total = params.total_supply
        return params.steepness * (supply * ONE_18 - params.midpoint * total) // (total * ONE_18)

    def price(self, params: CurveParams, supply: int) -> int:
        if supply <= 0:
            return params.initial_price
        weight = _logistic(self._argument(params, supply))
        return params.initial_price + mul_down(self._price_range(params), weight)

    def integral(self, params: CurveParams, start: int, end: int) -> int:
        if end <= start:
            return 0
        k = params.steepness
        total = params.total_supply
        area = softplus(self._argument(params, end)) - softplus(self._argument(params, start))
        linear = params.initial_price * (end - start) * k
        curved = total * self._price_range(params) * max(area, 0)
        return (linear + curved) // (ONE_18 * k)
