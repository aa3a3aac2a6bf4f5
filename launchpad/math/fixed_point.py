"""18-decimal fixed-point math for bonding curves.

All prices, steepness values and supply fractions are integers scaled by
10^18. The exponential and logarithm follow Balancer's LogExpMath.sol
(digit extraction against precomputed powers of e, then a Taylor series),
which keeps the relative error of exp around 1e-18 over the whole valid
range, well inside the 1e-9 bound curve pricing needs. exp is monotonic in
its argument.

expm1_36 evaluates e^x - 1 at 36 decimals so that the integral of a curve
over a tiny supply interval does not collapse to zero.
"""

from __future__ import annotations

from launchpad.errors import CalculationFailed

__all__ = [
    # Errors
    "FixedPointError",
    "InvalidExponent",
    "LogDomainError",
    # Functions
    "exp",
    "ln",
    "expm1_36",
    "softplus",
    "mul_down",
    # Constants
    "ONE_18",
    "ONE_20",
    "ONE_36",
    "MAX_NATURAL_EXPONENT",
    "MIN_NATURAL_EXPONENT",
]

ONE_18 = 10**18
ONE_20 = 10**20
ONE_36 = 10**36

MAX_NATURAL_EXPONENT = 130 * ONE_18  # e^130 is the max we can handle
MIN_NATURAL_EXPONENT = -41 * ONE_18  # e^-41 is close to zero

# Below this argument (0.125) expm1_36 uses its own series
_EXPM1_SERIES_BOUND = ONE_36 // 8

# x values are exponents (powers of 2), a values are e^x
X_18 = {
    0: 128 * ONE_18,  # 2^7
    1: 64 * ONE_18,  # 2^6
}
A_18 = {
    0: 38877084059945950922200000000000000000000000000000000000,  # e^128
    1: 6235149080811616882910000000,  # e^64
}

X_20 = {
    2: 3_200_000_000_000_000_000_000,  # 2^5
    3: 1_600_000_000_000_000_000_000,  # 2^4
    4: 800_000_000_000_000_000_000,  # 2^3
    5: 400_000_000_000_000_000_000,  # 2^2
    6: 200_000_000_000_000_000_000,  # 2^1
    7: 100_000_000_000_000_000_000,  # 2^0
    8: 50_000_000_000_000_000_000,  # 2^-1
    9: 25_000_000_000_000_000_000,  # 2^-2
    10: 12_500_000_000_000_000_000,  # 2^-3
    11: 6_250_000_000_000_000_000,  # 2^-4
}
A_20 = {
    2: 7_896_296_018_268_069_516_100_000_000_000_000,  # e^32
    3: 888_611_052_050_787_263_676_000_000,  # e^16
    4: 298_095_798_704_172_827_474_000,  # e^8
    5: 5_459_815_003_314_423_907_810,  # e^4
    6: 738_905_609_893_065_022_723,  # e^2
    7: 271_828_182_845_904_523_536,  # e^1
    8: 164_872_127_070_012_814_685,  # e^0.5
    9: 128_402_541_668_774_148_407,  # e^0.25
    10: 113_314_845_306_682_631_683,  # e^0.125
    11: 106_449_445_891_785_942_956,  # e^0.0625
}


class FixedPointError(CalculationFailed):
    """Base error for fixed-point operations."""

    pass


class InvalidExponent(FixedPointError):
    """Exponent is outside [MIN_NATURAL_EXPONENT, MAX_NATURAL_EXPONENT]."""

    pass


class LogDomainError(FixedPointError):
    """Logarithm of a non-positive value."""

    pass


def exp(x: int) -> int:
    """Compute e^x where x is 18-decimal fixed-point.

    Raises:
        InvalidExponent: If x is outside the supported range
    """
    if not (MIN_NATURAL_EXPONENT <= x <= MAX_NATURAL_EXPONENT):
        raise InvalidExponent(f"Exponent {x} outside valid range")

    if x < 0:
        # e^-x = 1 / e^x
        return (ONE_18 * ONE_18) // exp(-x)

    # Peel off e^128 or e^64 at 18 decimals
    if x >= X_18[0]:
        x -= X_18[0]
        first_an = A_18[0]
    elif x >= X_18[1]:
        x -= X_18[1]
        first_an = A_18[1]
    else:
        first_an = 1

    # Remaining work happens at 20 decimals
    x *= 100

    # Multiply in e^32 down to e^0.125 for each power of two present in x
    product = ONE_20
    for i in range(2, 10):
        if x >= X_20[i]:
            x -= X_20[i]
            product = (product * A_20[i]) // ONE_20

    # Taylor series on the remainder (now below 0.125):
    # e^x = 1 + x + x^2/2! + ... + x^12/12!
    series_sum = ONE_20
    term = x
    series_sum += term

    for i in range(2, 13):
        term = ((term * x) // ONE_20) // i
        series_sum += term

    return (((product * series_sum) // ONE_20) * first_an) // 100


def ln(a: int) -> int:
    """Compute the natural logarithm of a (18-decimal fixed-point).

    Raises:
        LogDomainError: If a is not positive
    """
    if a <= 0:
        raise LogDomainError(f"ln undefined for {a}")
    if a < ONE_18:
        # ln(a) = -ln(1/a)
        return -ln((ONE_18 * ONE_18) // a)

    sum_val = 0

    # Divide out e^128 and e^64 (18 decimals)
    for i in range(2):
        if a >= A_18[i] * ONE_18:
            a //= A_18[i]
            sum_val += X_18[i]

    # Same for e^32 .. e^0.0625 at 20 decimals
    sum_val *= 100
    a *= 100

    for i in range(2, 12):
        if a >= A_20[i]:
            a = (a * ONE_20) // A_20[i]
            sum_val += X_20[i]

    # ln(a) = 2 * arctanh((a-1)/(a+1)) = 2 * (z + z^3/3 + z^5/5 + ...)
    z = ((a - ONE_20) * ONE_20) // (a + ONE_20)
    z_squared = (z * z) // ONE_20

    num = z
    series_sum = num
    # Six terms, up to z^11/11
    for i in range(3, 12, 2):
        num = (num * z_squared) // ONE_20
        series_sum += num // i

    series_sum *= 2

    return (sum_val + series_sum) // 100


def expm1_36(x: int) -> int:
    """Compute e^x - 1 for a non-negative 36-decimal argument.

    Returns a 36-decimal result. Small arguments use the Taylor series
    directly, so the result keeps ~36 significant digits even when x is tiny.
    """
    if x < 0:
        raise InvalidExponent(f"expm1_36 requires non-negative argument, got {x}")
    if x == 0:
        return 0
    if x > _EXPM1_SERIES_BOUND:
        return exp(x // ONE_18) * ONE_18 - ONE_36

    result = 0
    term = x
    n = 1
    while term:
        result += term
        n += 1
        term = (term * x) // ONE_36 // n
    return result


def softplus(z: int) -> int:
    """Compute ln(1 + e^z) for a signed 18-decimal z."""
    if z < MIN_NATURAL_EXPONENT:
        return 0
    return ln(ONE_18 + exp(z))


def mul_down(a: int, b: int) -> int:
    """Multiply with floor rounding: (a * b) // 10^18"""
    return (a * b) // ONE_18
