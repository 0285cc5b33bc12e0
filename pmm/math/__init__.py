"""Mathematical primitives for the PMM engine.

This package provides:
- decimal_math: 18-decimal fixed-point helpers with explicit rounding
- pmm_math: closed-form PMM integrals and quadratic solvers
"""

from pmm.math.decimal_math import (
    div_ceil,
    div_floor,
    from_fixed,
    mul_ceil,
    mul_floor,
    reciprocal_ceil,
    reciprocal_floor,
    to_fixed,
)
from pmm.math.pmm_math import (
    general_integrate,
    solve_quadratic_for_target,
    solve_quadratic_for_trade,
)

__all__ = [
    # Fixed point
    "mul_floor",
    "mul_ceil",
    "div_floor",
    "div_ceil",
    "reciprocal_floor",
    "reciprocal_ceil",
    "to_fixed",
    "from_fixed",
    # PMM curve
    "general_integrate",
    "solve_quadratic_for_trade",
    "solve_quadratic_for_target",
]
