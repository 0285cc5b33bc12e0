"""R-status transitions and target bookkeeping.

After a trade or flash loan the pool moves to new reserves. The target of the
side in surplus is carried over from the pre-trade adjusted snapshot: when a
trade crosses through balance, that target is exactly the crossover point.
The deficit side's target is then re-derived from the post-trade reserves.

When the surplus reserve lands exactly on its target the pool is balanced
again; both targets are reset to the post-trade reserves.
"""

from __future__ import annotations

from typing import assert_never

from pmm.errors import InvariantViolation
from pmm.invariants import assert_invariants
from pmm.math.decimal_math import reciprocal_floor
from pmm.math.pmm_math import solve_quadratic_for_target
from pmm.state import PoolState, RState


def transition_state(
    pre: PoolState,
    base_reserve: int,
    quote_reserve: int,
    new_r_status: RState,
) -> PoolState:
    """Build the post-trade snapshot.

    Args:
        pre: Pre-trade snapshot with adjusted targets
        base_reserve: Base reserve after the trade (fees already applied)
        quote_reserve: Quote reserve after the trade
        new_r_status: R-status reported by the curve solver

    Returns:
        New snapshot satisfying all pool invariants

    Raises:
        InvariantViolation: If the surplus reserve ended below its target
    """
    params = pre.params

    if new_r_status is RState.ONE:
        return pre.rebalanced(base_reserve, quote_reserve)

    if new_r_status is RState.ABOVE_ONE:
        base_target = pre.base_target
        if base_reserve == base_target:
            return pre.rebalanced(base_reserve, quote_reserve)
        if base_reserve < base_target:
            raise InvariantViolation(["above_one_base_surplus"])
        quote_target = solve_quadratic_for_target(
            quote_reserve, base_reserve - base_target, params.i, params.k
        )
        new_state = PoolState(
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            base_target=base_target,
            quote_target=quote_target,
            r_status=RState.ABOVE_ONE,
            params=params,
        )
    elif new_r_status is RState.BELOW_ONE:
        quote_target = pre.quote_target
        if quote_reserve == quote_target:
            return pre.rebalanced(base_reserve, quote_reserve)
        if quote_reserve < quote_target:
            raise InvariantViolation(["below_one_quote_surplus"])
        base_target = solve_quadratic_for_target(
            base_reserve,
            quote_reserve - quote_target,
            reciprocal_floor(params.i),
            params.k,
        )
        new_state = PoolState(
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            base_target=base_target,
            quote_target=quote_target,
            r_status=RState.BELOW_ONE,
            params=params,
        )
    else:
        assert_never(new_r_status)

    assert_invariants(new_state)
    return new_state
