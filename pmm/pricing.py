"""PMM curve solver.

Prices a trade against a pool snapshot, dispatching on the R-status:

- ONE: both reserves sit at their targets; the trade is solved on the
  balanced curve seeded with the target as current reserve.
- Deepening: the trade pushes further into the existing surplus and is
  solved on the quadratic against the short side's target.
- Restoring: the trade moves the pool back toward balance and is priced by
  integrating along the surplus side. If it overshoots the target, it is split
  into a restoring leg (paid out exactly the surplus) and a balanced-curve leg
  for the remainder.

The deficit side's target is recomputed from the reserves on every call and
is rounded against the trader for each use. Restoring integrals read the
floored target, since a larger target would pay out more. Deepening trades,
the distance back to balance and the crossover point kept after an
overshoot read the ceiled one. Passing an
already adjusted snapshot is fine since the recomputation only reads
reserves and the surplus side's target. All functions are pure.
"""

from __future__ import annotations

from dataclasses import replace
from typing import assert_never

from pmm.constants import ONE
from pmm.errors import InsufficientLiquidity
from pmm.math.decimal_math import div_floor, mul_floor, reciprocal_floor
from pmm.math.pmm_math import (
    general_integrate,
    solve_quadratic_for_target,
    solve_quadratic_for_trade,
)
from pmm.safe_int import S
from pmm.state import PoolState, RState


def adjusted_target(state: PoolState, round_up: bool = False) -> PoolState:
    """Recompute the deficit side's target from reserves and the surplus.

    The surplus side's target is authoritative; the deficit side's target is
    the reserve level that the surplus would buy back on the balanced curve.
    At R = ONE nothing changes.

    Args:
        state: Snapshot with stored targets
        round_up: Round the recovered target up instead of down
    """
    params = state.params
    if state.r_status is RState.ONE:
        return state
    if state.r_status is RState.ABOVE_ONE:
        quote_target = solve_quadratic_for_target(
            state.quote_reserve,
            (S(state.base_reserve) - S(state.base_target)).value,
            params.i,
            params.k,
            round_up=round_up,
        )
        return replace(state, quote_target=quote_target)
    if state.r_status is RState.BELOW_ONE:
        base_target = solve_quadratic_for_target(
            state.base_reserve,
            (S(state.quote_reserve) - S(state.quote_target)).value,
            reciprocal_floor(params.i),
            params.k,
            round_up=round_up,
        )
        return replace(state, base_target=base_target)
    assert_never(state.r_status)


# =============================================================================
# Per-regime legs
# =============================================================================


def _r_one_sell_base(state: PoolState, pay_base: int) -> int:
    # Balanced curve, seeded with the quote target as current reserve
    return solve_quadratic_for_trade(
        state.quote_target, state.quote_target, pay_base, state.params.i, state.params.k
    )


def _r_one_sell_quote(state: PoolState, pay_quote: int) -> int:
    return solve_quadratic_for_trade(
        state.base_target,
        state.base_target,
        pay_quote,
        reciprocal_floor(state.params.i),
        state.params.k,
    )


def _deepening_sell_base(state: PoolState, pay_base: int) -> int:
    if state.quote_reserve == 0:
        raise InsufficientLiquidity("Quote reserve is empty", "quote_reserve_non_zero")
    return solve_quadratic_for_trade(
        state.quote_target, state.quote_reserve, pay_base, state.params.i, state.params.k
    )


def _deepening_sell_quote(state: PoolState, pay_quote: int) -> int:
    if state.base_reserve == 0:
        raise InsufficientLiquidity("Base reserve is empty", "base_reserve_non_zero")
    return solve_quadratic_for_trade(
        state.base_target,
        state.base_reserve,
        pay_quote,
        reciprocal_floor(state.params.i),
        state.params.k,
    )


def _restoring_sell_base(state: PoolState, pay_base: int) -> int:
    if state.base_reserve == 0 and state.params.k > 0:
        raise InsufficientLiquidity("Base reserve is empty", "base_reserve_non_zero")
    return general_integrate(
        state.base_target,
        (S(state.base_reserve) + S(pay_base)).value,
        state.base_reserve,
        state.params.i,
        state.params.k,
    )


def _restoring_sell_quote(state: PoolState, pay_quote: int) -> int:
    if state.quote_reserve == 0 and state.params.k > 0:
        raise InsufficientLiquidity("Quote reserve is empty", "quote_reserve_non_zero")
    return general_integrate(
        state.quote_target,
        (S(state.quote_reserve) + S(pay_quote)).value,
        state.quote_reserve,
        reciprocal_floor(state.params.i),
        state.params.k,
    )


# =============================================================================
# Public solver
# =============================================================================


def sell_base_token(state: PoolState, pay_base: int) -> tuple[int, RState]:
    """Price selling base into the pool.

    Args:
        state: Pool snapshot, adjusted or not
        pay_base: Base amount paid in

    Returns:
        Tuple of (gross quote amount before fees, R-status after the trade)
    """
    if state.r_status is RState.ONE:
        return _r_one_sell_base(state, pay_base), RState.ABOVE_ONE

    bound = adjusted_target(state, round_up=True)
    if state.r_status is RState.ABOVE_ONE:
        return _deepening_sell_base(bound, pay_base), RState.ABOVE_ONE

    if state.r_status is RState.BELOW_ONE:
        back_to_one_pay_base = (S(bound.base_target) - S(state.base_reserve)).value
        back_to_one_receive_quote = (S(state.quote_reserve) - S(state.quote_target)).value
        if pay_base < back_to_one_pay_base:
            receive_quote = _restoring_sell_base(adjusted_target(state), pay_base)
            # Rounding may not pay out more than the surplus
            return min(receive_quote, back_to_one_receive_quote), RState.BELOW_ONE
        if pay_base == back_to_one_pay_base:
            return back_to_one_receive_quote, RState.ONE
        overshoot = pay_base - back_to_one_pay_base
        receive_quote = (
            S(back_to_one_receive_quote) + S(_r_one_sell_base(state, overshoot))
        ).value
        return receive_quote, RState.ABOVE_ONE

    assert_never(state.r_status)


def sell_quote_token(state: PoolState, pay_quote: int) -> tuple[int, RState]:
    """Price selling quote into the pool.

    Args:
        state: Pool snapshot, adjusted or not
        pay_quote: Quote amount paid in

    Returns:
        Tuple of (gross base amount before fees, R-status after the trade)
    """
    if state.r_status is RState.ONE:
        return _r_one_sell_quote(state, pay_quote), RState.BELOW_ONE

    bound = adjusted_target(state, round_up=True)
    if state.r_status is RState.BELOW_ONE:
        return _deepening_sell_quote(bound, pay_quote), RState.BELOW_ONE

    if state.r_status is RState.ABOVE_ONE:
        back_to_one_pay_quote = (S(bound.quote_target) - S(state.quote_reserve)).value
        back_to_one_receive_base = (S(state.base_reserve) - S(state.base_target)).value
        if pay_quote < back_to_one_pay_quote:
            receive_base = _restoring_sell_quote(adjusted_target(state), pay_quote)
            return min(receive_base, back_to_one_receive_base), RState.ABOVE_ONE
        if pay_quote == back_to_one_pay_quote:
            return back_to_one_receive_base, RState.ONE
        overshoot = pay_quote - back_to_one_pay_quote
        receive_base = (
            S(back_to_one_receive_base) + S(_r_one_sell_quote(state, overshoot))
        ).value
        return receive_base, RState.BELOW_ONE

    assert_never(state.r_status)


def mid_price(state: PoolState) -> int:
    """Marginal price of one base unit in quote units (18-decimal fixed point).

    Equals i at R = ONE, rises above i while base is in deficit and falls
    below i while base is in surplus.

    Args:
        state: Snapshot with adjusted targets
    """
    params = state.params
    if state.r_status is RState.ABOVE_ONE:
        if state.quote_reserve == 0:
            raise InsufficientLiquidity("Quote reserve is empty", "quote_reserve_non_zero")
        ratio = div_floor(
            ((S(state.quote_target) * S(state.quote_target)) // S(state.quote_reserve)).value,
            state.quote_reserve,
        )
        ratio = (S(ONE) - S(params.k) + S(mul_floor(params.k, ratio))).value
        return div_floor(params.i, ratio)

    if state.r_status is RState.ONE or state.r_status is RState.BELOW_ONE:
        if state.base_reserve == 0:
            raise InsufficientLiquidity("Base reserve is empty", "base_reserve_non_zero")
        ratio = div_floor(
            ((S(state.base_target) * S(state.base_target)) // S(state.base_reserve)).value,
            state.base_reserve,
        )
        ratio = (S(ONE) - S(params.k) + S(mul_floor(params.k, ratio))).value
        return mul_floor(params.i, ratio)

    assert_never(state.r_status)
