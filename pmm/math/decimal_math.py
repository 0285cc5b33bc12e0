"""18-decimal fixed-point arithmetic with explicit rounding direction.

Every helper names its truncation direction. Which side of a trade absorbs
rounding dust depends on these choices, so callers pick floor or ceiling per
step rather than relying on evaluation order.

All values are integers scaled by 10^18 and every intermediate is checked
against the uint256 range (see ``pmm.safe_int``).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pmm.constants import ONE, ONE2
from pmm.errors import InvalidParameter
from pmm.safe_int import S

__all__ = [
    "mul_floor",
    "mul_ceil",
    "div_floor",
    "div_ceil",
    "reciprocal_floor",
    "reciprocal_ceil",
    "to_fixed",
    "from_fixed",
]


def mul_floor(target: int, d: int) -> int:
    """Multiply with floor rounding: (target * d) // 10^18"""
    return ((S(target) * S(d)) // ONE).value


def mul_ceil(target: int, d: int) -> int:
    """Multiply with ceiling rounding."""
    return (S(target) * S(d)).ceiling_div(ONE).value


def div_floor(target: int, d: int) -> int:
    """Divide with floor rounding: (target * 10^18) // d

    Raises:
        DivisionByZero: If d is zero
    """
    return ((S(target) * ONE) // S(d)).value


def div_ceil(target: int, d: int) -> int:
    """Divide with ceiling rounding.

    Raises:
        DivisionByZero: If d is zero
    """
    return (S(target) * ONE).ceiling_div(S(d)).value


def reciprocal_floor(target: int) -> int:
    """Return 1 / target with floor rounding: 10^36 // target"""
    return (S(ONE2) // S(target)).value


def reciprocal_ceil(target: int) -> int:
    """Return 1 / target with ceiling rounding."""
    return S(ONE2).ceiling_div(S(target)).value


def to_fixed(value: Decimal | str | int) -> int:
    """Scale a human-readable number to 18-decimal fixed point.

    Uses ROUND_HALF_UP for consistent rounding behavior. Requires non-negative
    input (matches unsigned semantics).

    Examples:
        to_fixed("0.002") == 2 * 10**15
        to_fixed(100) == 100 * 10**18

    Raises:
        InvalidParameter: If value is negative or not a number
    """
    try:
        d = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as err:
        raise InvalidParameter(f"Not a decimal number: {value!r}", "decimal_format") from err
    if not d.is_finite() or d < 0:
        raise InvalidParameter(f"to_fixed requires non-negative input, got {value}", "non_negative")
    scaled = (d * ONE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(scaled)


def from_fixed(value: int) -> Decimal:
    """Convert an 18-decimal fixed-point integer to Decimal for display."""
    return Decimal(value) / Decimal(ONE)
