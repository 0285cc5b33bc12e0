"""Closed-form PMM curve math.

The PMM marginal price on the side that is short of its target V0 is

    P(V) = i * (1 - k + k * (V0 / V)^2)

so every trade reduces to either an integral of P (when the end reserve is
known) or to a quadratic in the unknown end reserve (when only the input
amount is known). k = 0 is a constant-price line, k = 1 is constant product.

Rounding is fixed per step and always favours the pool: integrals round down
(the trader receives less), the solved end reserve rounds up (the pool keeps
more). Targets can be rounded either way; callers pick the direction that
charges the trader (see ``pmm.pricing``).

IMPORTANT: The integral runs on SafeInt so an overflowing or negative
intermediate raises instead of producing a wrong price. The two quadratic
solves keep every term at full 10^18 scale, which needs a double-width
accumulator: their intermediates are checked against 2^512 - 1 and only the
results against uint256.
"""

from math import isqrt

from pmm.constants import ONE, ONE2
from pmm.errors import ArithmeticOverflow, InsufficientLiquidity, Underflow
from pmm.math.decimal_math import div_floor, mul_floor
from pmm.safe_int import S

UINT512_MAX = 2**512 - 1


def _wide(value: int, op: str) -> int:
    if value < 0:
        raise Underflow(f"Underflow: {op} = {value}")
    if value > UINT512_MAX:
        raise ArithmeticOverflow(f"Overflow: {op} exceeds 2^512-1")
    return value


def _sqrt_ceil(value: int) -> int:
    root = isqrt(value)
    return root + 1 if root * root < value else root


def _div_ceil(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def general_integrate(v0: int, v1: int, v2: int, i: int, k: int) -> int:
    """Integrate the PMM price between two reserve levels.

    Returns the counter amount for moving a reserve from v2 up to v1 while its
    target is v0:

        i * (v1 - v2) * (1 - k + k * v0^2 / (v1 * v2))

    Args:
        v0: Target reserve (must be positive)
        v1: Reserve after the trade (v1 >= v2)
        v2: Reserve before the trade (must be positive when k > 0)
        i: Price (18-decimal fixed point)
        k: Slippage factor in [0, ONE]

    Returns:
        Counter amount, rounded down

    Raises:
        InsufficientLiquidity: If the target is zero
    """
    if v0 == 0:
        raise InsufficientLiquidity("Target reserve is zero", "target_non_zero")

    # i * delta, still scaled by ONE
    fair_amount = S(i) * (S(v1) - S(v2))
    if k == 0:
        return (fair_amount // ONE).value

    # k * v0^2 / (v1 * v2), both divisions floor
    v0v0v1v2 = div_floor(((S(v0) * S(v0)) // S(v1)).value, v2)
    penalty = mul_floor(k, v0v0v1v2)

    return (((S(ONE) - S(k) + S(penalty)) * fair_amount) // ONE2).value



def solve_quadratic_for_target(
    v1: int, delta: int, i: int, k: int, round_up: bool = False
) -> int:
    """Recover the target reserve from the current reserve and the other side's surplus.

    Solves for V0 given the short side's reserve V1 and the counter-side
    surplus delta, in the form that stays exact for small k:

        V0 = V1 + 2 * i * delta / (1 + sqrt(1 + 4 * k * i * delta / V1))

    Args:
        v1: Current reserve on the short side
        delta: Surplus of the other asset over its target
        i: Price converting delta into units of v1
        k: Slippage factor in [0, ONE]
        round_up: Round the target up instead of down

    Returns:
        Target reserve (always >= v1)

    Raises:
        ArithmeticOverflow: If the target does not fit in uint256
    """
    if delta == 0:
        return v1
    if v1 == 0 and k > 0:
        return 0

    # sqrt(1 + 4 * k * i * delta / V1), scaled by ONE after the root
    if k == 0:
        root = ONE
    else:
        ratio = _wide(4 * k * i * delta, "4 * k * i * delta")
        if round_up:
            root = isqrt(ONE2 + ratio // v1)
        else:
            root = _sqrt_ceil(ONE2 + _div_ceil(ratio, v1))

    numerator = _wide(2 * i * delta, "2 * i * delta")
    if round_up:
        surplus_value = _div_ceil(numerator, ONE + root)
    else:
        surplus_value = numerator // (ONE + root)
    return (S(v1) + S(surplus_value)).value


def solve_quadratic_for_trade(v0: int, v1: int, delta: int, i: int, k: int) -> int:
    """Solve for the amount paid out of the short side for an input delta.

    The end reserve V2 is the positive root of

        (1 - k) * V2^2 - b * V2 - k * V0^2 = 0
        b = (1 - k) * V1 - k * V0^2 / V1 - i * delta

    and the result is V1 - V2. V2 grows with b, so b is rounded up (its only
    lossy term, k * V0^2 / V1, is floored) and the root and the final
    division round up. The negative root would move the reserve away from
    the trade direction and is never taken.

    Special cases:
        k == 0: constant price; an output above V1 cannot be paid
        k == ONE: constant product, V1 * temp / (1 + temp) with
            temp = i * delta * V1 / V0^2

    Args:
        v0: Target reserve of the side being paid out (must be positive)
        v1: Current reserve of that side
        delta: Input amount of the other asset
        i: Price converting delta into units of v1
        k: Slippage factor in [0, ONE]

    Returns:
        Amount paid out, rounded down (never more than v1)

    Raises:
        InsufficientLiquidity: If the target is zero, or if k = 0 and the
            constant-price output exceeds v1
    """
    if v0 == 0:
        raise InsufficientLiquidity("Target reserve is zero", "target_non_zero")
    if delta == 0:
        return 0

    if k == 0:
        amount = mul_floor(i, delta)
        if amount > v1:
            raise InsufficientLiquidity(
                f"Constant-price output {amount} exceeds reserve {v1}", "reserve_covers_output"
            )
        return amount

    if k == ONE:
        i_delta = _wide(i * delta * v1, "i * delta * V1")
        temp = i_delta // _wide(v0 * v0, "V0^2")
        return (S(v1) * S(temp) // (S(temp) + ONE)).value

    if v1 == 0:
        raise InsufficientLiquidity("Reserve is empty", "reserve_non_zero")

    one_minus_k = ONE - k
    # b scaled by ONE, signed
    b = one_minus_k * v1 - _wide(k * v0 * v0, "k * V0^2") // v1 - i * delta
    discriminant = _wide(b * b + 4 * one_minus_k * k * v0 * v0, "discriminant")
    numerator = b + _sqrt_ceil(discriminant)

    v2 = _div_ceil(numerator, 2 * one_minus_k)
    if v2 > v1:
        return 0
    return v1 - v2
