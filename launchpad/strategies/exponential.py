"""Exponential bonding curve.

price(s) = initial_price * e^(steepness * s / total_supply)

The price grows exponentially in the fraction of supply sold. Its integral
over [s0, s1] has the closed form

    initial_price * total_supply / steepness * e^(k*s0/S) * (e^(k*(s1-s0)/S) - 1)

which is evaluated with the e^x - 1 term at 36 decimals, so small trades
keep full precision instead of collapsing to zero.
"""

from __future__ import annotations

from launchpad.constants import MAX_STEEPNESS
from launchpad.errors import ValidationError
from launchpad.math.fixed_point import ONE_18, ONE_36, exp, expm1_36, mul_down
from launchpad.strategies.base import CurveParams


class ExponentialCurve:
    """Curve implementation for the exponential price law."""

    name = "Exponential"

    def normalize(self, params: CurveParams) -> CurveParams:
        if params.initial_price <= 0:
            raise ValidationError("Invalid parameters - initial price must be positive")
        if params.total_supply <= 0:
            raise ValidationError("Invalid parameters - total supply must be positive")
        if params.steepness <= 0:
            raise ValidationError("Invalid parameters - steepness must be positive")
        if params.steepness > MAX_STEEPNESS:
            raise ValidationError(
                f"Invalid parameters - steepness {params.steepness} exceeds {MAX_STEEPNESS}"
            )
        return CurveParams(
            initial_price=params.initial_price,
            steepness=params.steepness,
            total_supply=params.total_supply,
        )

    def price(self, params: CurveParams, supply: int) -> int:
        if supply <= 0:
            return params.initial_price
        exponent = params.steepness * supply // params.total_supply
        return mul_down(params.initial_price, exp(exponent))

    def integral(self, params: CurveParams, start: int, end: int) -> int:
        if end <= start:
            return 0
        k = params.steepness
        total = params.total_supply
        growth = exp(k * start // total)
        # k * (end - start) / total at 36 decimals
        delta = k * (end - start) * ONE_18 // total
        return (params.initial_price * total * growth * expm1_36(delta)) // (ONE_18 * ONE_36 * k)
