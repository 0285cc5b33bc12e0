"""Error taxonomy for the PMM engine.

Every error names the precondition or invariant it guards through the
``invariant`` attribute, so callers can tell an input problem (adjust and
retry) apart from a liquidity problem or a failed repayment.

Kernel errors (``ArithmeticOverflow``, ``Underflow``, ``DivisionByZero``)
also subclass ``ArithmeticError``; ``InvalidParameter`` also subclasses
``ValueError``.
"""

from __future__ import annotations


class PMMError(Exception):
    """Base class for all engine errors.

    Attributes:
        invariant: Short identifier of the violated precondition
            (e.g. ``"reserve_sufficient"``)
        detail: Human-readable description
    """

    default_invariant = "unspecified"

    def __init__(self, detail: str, invariant: str | None = None) -> None:
        self.invariant = invariant or self.default_invariant
        self.detail = detail
        super().__init__(f"[{self.invariant}] {detail}")


class ArithmeticOverflow(PMMError, ArithmeticError):
    """A fixed-point result does not fit in uint256."""

    default_invariant = "uint256_range"


class Underflow(ArithmeticOverflow):
    """Subtraction would produce a negative result."""

    default_invariant = "non_negative"


class DivisionByZero(PMMError, ArithmeticError):
    """Division or modulo by zero."""

    default_invariant = "non_zero_divisor"


class InsufficientLiquidity(PMMError):
    """The pool cannot deliver the requested amount. State is unchanged."""

    default_invariant = "reserve_sufficient"


class FlashLoanFailed(PMMError):
    """Post-operation balances do not cover the borrowed amount plus fees."""

    default_invariant = "flash_repaid"


class InvalidParameter(PMMError, ValueError):
    """An input or pool parameter is outside its allowed domain."""

    default_invariant = "parameter_domain"


class PriceLimitExceeded(PMMError):
    """The trade would deliver less than the caller's ``min_receive``."""

    default_invariant = "min_receive"


class InvariantViolation(PMMError):
    """A computed post-trade state breaks one or more pool invariants."""

    default_invariant = "pool_invariants"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
