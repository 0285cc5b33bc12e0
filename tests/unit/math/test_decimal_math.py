"""Tests for 18-decimal fixed-point helpers."""

from decimal import Decimal

import pytest

from pmm.constants import ONE, UINT256_MAX
from pmm.errors import ArithmeticOverflow, DivisionByZero, InvalidParameter
from pmm.math import (
    div_ceil,
    div_floor,
    from_fixed,
    mul_ceil,
    mul_floor,
    reciprocal_ceil,
    reciprocal_floor,
    to_fixed,
)


class TestMultiplication:
    """Tests for mul_floor / mul_ceil."""

    def test_exact_product(self):
        """Exact products agree in both directions."""
        assert mul_floor(2 * ONE, 3 * ONE) == 6 * ONE
        assert mul_ceil(2 * ONE, 3 * ONE) == 6 * ONE

    def test_rounding_direction(self):
        """Truncated products differ by one unit."""
        assert mul_floor(1, ONE // 2) == 0
        assert mul_ceil(1, ONE // 2) == 1

    def test_zero(self):
        """Anything times zero is zero."""
        assert mul_floor(0, ONE) == 0
        assert mul_ceil(ONE, 0) == 0

    def test_overflow_raises(self):
        """Products beyond uint256 raise instead of wrapping."""
        with pytest.raises(ArithmeticOverflow):
            mul_floor(UINT256_MAX, 2)


class TestDivision:
    """Tests for div_floor / div_ceil."""

    def test_exact_quotient(self):
        """Exact quotients agree in both directions."""
        assert div_floor(6 * ONE, 3 * ONE) == 2 * ONE
        assert div_ceil(6 * ONE, 3 * ONE) == 2 * ONE

    def test_rounding_direction(self):
        """One third rounds down and up respectively."""
        assert div_floor(1, 3) == 333333333333333333
        assert div_ceil(1, 3) == 333333333333333334

    def test_division_by_zero_raises(self):
        """Zero divisors raise DivisionByZero."""
        with pytest.raises(DivisionByZero):
            div_floor(ONE, 0)
        with pytest.raises(DivisionByZero):
            div_ceil(ONE, 0)


class TestReciprocal:
    """Tests for reciprocal_floor / reciprocal_ceil."""

    def test_exact(self):
        """1 / 100 is exact."""
        assert reciprocal_floor(100 * ONE) == 10**16
        assert reciprocal_ceil(100 * ONE) == 10**16

    def test_inexact(self):
        """1 / 3 rounds in the named direction."""
        assert reciprocal_floor(3 * ONE) == 333333333333333333
        assert reciprocal_ceil(3 * ONE) == 333333333333333334

    def test_zero_raises(self):
        """The reciprocal of zero is undefined."""
        with pytest.raises(DivisionByZero):
            reciprocal_floor(0)


class TestConversion:
    """Tests for to_fixed / from_fixed."""

    def test_to_fixed_from_string(self):
        """Decimal strings scale by 10^18."""
        assert to_fixed("0.002") == 2 * 10**15
        assert to_fixed("1.5") == 15 * 10**17

    def test_to_fixed_from_int(self):
        """Integers scale by 10^18."""
        assert to_fixed(100) == 100 * ONE

    def test_to_fixed_rounds_half_up(self):
        """Digits beyond 18 decimals round half up."""
        assert to_fixed("1.0000000000000000005") == ONE + 1
        assert to_fixed("1.0000000000000000004") == ONE

    def test_to_fixed_negative_raises(self):
        """Negative amounts are rejected."""
        with pytest.raises(InvalidParameter):
            to_fixed("-1")

    def test_to_fixed_garbage_raises(self):
        """Non-numeric input is rejected."""
        with pytest.raises(InvalidParameter) as exc_info:
            to_fixed("abc")
        assert exc_info.value.invariant == "decimal_format"
        with pytest.raises(InvalidParameter):
            to_fixed("NaN")

    def test_from_fixed(self):
        """from_fixed gives an exact Decimal."""
        assert from_fixed(15 * 10**17) == Decimal("1.5")
        assert from_fixed(1) == Decimal("1E-18")
