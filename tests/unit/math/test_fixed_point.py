"""Tests for 18-decimal fixed-point math."""

from decimal import Decimal, localcontext

import pytest

from launchpad.errors import CalculationFailed
from launchpad.math.fixed_point import (
    MAX_NATURAL_EXPONENT,
    MIN_NATURAL_EXPONENT,
    ONE_18,
    ONE_36,
    InvalidExponent,
    LogDomainError,
    exp,
    expm1_36,
    ln,
    mul_down,
    softplus,
)


def relative_error(actual: int, expected: Decimal) -> Decimal:
    return abs(Decimal(actual) - expected) / expected


class TestExp:
    """Tests for exp()."""

    def test_exp_zero_is_one(self):
        assert exp(0) == ONE_18

    @pytest.mark.parametrize("x", ["0.000025", "0.5", "1", "2.5", "10", "40"])
    def test_exp_matches_decimal(self, x):
        """Relative error stays far below 1e-9."""
        expected = Decimal(x).exp() * ONE_18
        assert relative_error(exp(int(Decimal(x) * ONE_18)), expected) < Decimal("1e-12")

    def test_exp_negative(self):
        expected = Decimal(-3).exp() * ONE_18
        assert relative_error(exp(-3 * ONE_18), expected) < Decimal("1e-12")

    def test_exp_monotonic_on_grid(self):
        values = [exp(i * ONE_18 // 10) for i in range(0, 400)]
        assert all(a < b for a, b in zip(values, values[1:]))

    def test_exp_out_of_range_raises(self):
        with pytest.raises(InvalidExponent):
            exp(MAX_NATURAL_EXPONENT + 1)
        with pytest.raises(InvalidExponent):
            exp(MIN_NATURAL_EXPONENT - 1)

    def test_fixed_point_errors_are_calculation_failures(self):
        with pytest.raises(CalculationFailed):
            exp(MAX_NATURAL_EXPONENT + 1)


class TestLn:
    """Tests for ln()."""

    def test_ln_one_is_zero(self):
        assert ln(ONE_18) == 0

    @pytest.mark.parametrize("a", ["0.5", "2", "10", "1000"])
    def test_ln_matches_decimal(self, a):
        expected = Decimal(a).ln() * ONE_18
        assert abs(Decimal(ln(int(Decimal(a) * ONE_18))) - expected) < Decimal(10**6)

    def test_ln_non_positive_raises(self):
        with pytest.raises(LogDomainError):
            ln(0)
        with pytest.raises(LogDomainError):
            ln(-ONE_18)


class TestExpm1:
    """Tests for the 36-decimal e^x - 1."""

    def test_zero(self):
        assert expm1_36(0) == 0

    def test_tiny_argument_keeps_precision(self):
        """e^x - 1 ~ x for tiny x; exp() - ONE would lose every digit."""
        x = 10**18  # 1e-18 at 36 decimals
        assert expm1_36(x) == x

    def test_small_argument_matches_decimal(self):
        x = Decimal("0.00001")
        result = expm1_36(int(x * ONE_36))
        with localcontext() as ctx:
            ctx.prec = 60
            expected = (x.exp() - 1) * ONE_36
            assert abs(Decimal(result) - expected) / expected < Decimal("1e-25")

    def test_large_argument_falls_back_to_exp(self):
        result = expm1_36(2 * ONE_36)
        expected = (Decimal(2).exp() - 1) * ONE_36
        assert abs(Decimal(result) - expected) / expected < Decimal("1e-12")

    def test_negative_raises(self):
        with pytest.raises(InvalidExponent):
            expm1_36(-1)


class TestSoftplus:
    """Tests for softplus(z) = ln(1 + e^z)."""

    def test_softplus_at_zero_is_ln2(self):
        expected = Decimal(2).ln() * ONE_18
        assert abs(Decimal(softplus(0)) - expected) < Decimal(10**6)

    def test_softplus_very_negative_is_zero(self):
        assert softplus(MIN_NATURAL_EXPONENT - 1) == 0

    def test_softplus_increasing(self):
        values = [softplus(z * ONE_18) for z in range(-20, 21)]
        assert all(a < b for a, b in zip(values, values[1:]))


class TestMulDown:
    def test_rounds_down(self):
        assert mul_down(1, 1) == 0
        assert mul_down(2 * ONE_18, 3 * ONE_18) == 6 * ONE_18
