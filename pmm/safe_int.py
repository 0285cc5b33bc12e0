"""Checked uint256 integer wrapper for fixed-point arithmetic.

This module provides SafeInt, a lightweight wrapper that makes arithmetic
behave like checked unsigned 256-bit math:
- Results above 2^256-1 raise ArithmeticOverflow
- Subtraction below zero raises Underflow
- Division by zero raises DivisionByZero

Usage pattern:
    from pmm.safe_int import S

    def calculate(a: int, b: int, c: int) -> int:
        # Wrap at entry
        sa, sb, sc = S(a), S(b), S(c)

        # Natural arithmetic - automatically checked
        result = (sa * sb) // sc  # Raises if sc == 0
        remainder = sa - sb       # Raises if sb > sa

        # Unwrap at exit
        return result.value
"""

from __future__ import annotations

from math import isqrt

from pmm.constants import UINT256_MAX
from pmm.errors import ArithmeticOverflow, DivisionByZero, Underflow


def _check(value: int, op: str) -> int:
    if value < 0:
        raise Underflow(f"Underflow: {op} = {value}")
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"Overflow: {op} exceeds 2^256-1")
    return value


class SafeInt:
    """Unsigned integer with checked arithmetic operations.

    Every operator validates its result against the uint256 range, so an
    intermediate that would wrap or go negative on-chain raises here instead
    of producing a silently wrong price.

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        """Create a SafeInt from an integer or another SafeInt.

        Raises:
            TypeError: If value is not an int or SafeInt
            Underflow: If value is negative
            ArithmeticOverflow: If value exceeds 2^256-1
        """
        if isinstance(value, SafeInt):
            self._value = value._value
        elif isinstance(value, int) and not isinstance(value, bool):
            self._value = _check(value, str(value))
        else:
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __hash__(self) -> int:
        return hash(self._value)

    # --- Arithmetic operations ---

    def __add__(self, other: SafeInt | int) -> SafeInt:
        other_val = _extract_value(other)
        return SafeInt(_check(self._value + other_val, f"{self._value} + {other_val}"))

    def __radd__(self, other: int) -> SafeInt:
        return SafeInt(_check(other + self._value, f"{other} + {self._value}"))

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Subtract other from self.

        Raises:
            Underflow: If result would be negative
        """
        other_val = _extract_value(other)
        return SafeInt(_check(self._value - other_val, f"{self._value} - {other_val}"))

    def __rsub__(self, other: int) -> SafeInt:
        return SafeInt(_check(other - self._value, f"{other} - {self._value}"))

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        """Multiply two values.

        Raises:
            ArithmeticOverflow: If the product exceeds 2^256-1
        """
        other_val = _extract_value(other)
        return SafeInt(_check(self._value * other_val, f"{self._value} * {other_val}"))

    def __rmul__(self, other: int) -> SafeInt:
        return SafeInt(_check(other * self._value, f"{other} * {self._value}"))

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Integer division (floor).

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

    def __rfloordiv__(self, other: int) -> SafeInt:
        if self._value == 0:
            raise DivisionByZero(f"Division by zero: {other} // 0")
        return SafeInt(other // self._value)

    # --- Comparison operations ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return NotImplemented
        return not result

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __index__(self) -> int:
        return self._value

    # --- Named operations ---

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Ceiling division (rounds up).

        Computed as quotient plus one when a remainder is left, so the
        numerator never has to grow by ``other - 1`` first.

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Ceiling division by zero: {self._value}")
        quotient, remainder = divmod(self._value, other_val)
        return SafeInt(quotient + 1 if remainder > 0 else quotient)

    def sqrt(self) -> SafeInt:
        """Integer square root, rounded down."""
        return SafeInt(isqrt(self._value))


def _extract_value(x: SafeInt | int) -> int:
    """Extract integer value from SafeInt or int."""
    if isinstance(x, SafeInt):
        return x._value
    return x


# Convenience alias for concise code
S = SafeInt
