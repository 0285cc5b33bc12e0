"""Invariant checkers for pool snapshots.

Each function returns True when the invariant holds, and `check_invariants()`
returns the list of violated invariant ids (empty = all pass).

The deficit side's target is the curve image of the surplus side, so a
deviated pool has exactly one side in surplus and the other at or below its
target.
"""

from __future__ import annotations

from typing import Callable

from pmm.constants import ONE
from pmm.errors import InvariantViolation
from pmm.state import PoolState, RState


def inv_k_in_range(s: PoolState) -> bool:
    return 0 <= s.params.k <= ONE


def inv_fee_rates_below_one(s: PoolState) -> bool:
    return s.params.lp_fee_rate + s.params.mt_fee_rate < ONE


def inv_one_at_targets(s: PoolState) -> bool:
    if s.r_status is not RState.ONE:
        return True
    return s.base_reserve == s.base_target and s.quote_reserve == s.quote_target


def inv_above_one_base_surplus(s: PoolState) -> bool:
    if s.r_status is not RState.ABOVE_ONE:
        return True
    return s.base_reserve > s.base_target and s.quote_reserve <= s.quote_target


def inv_below_one_quote_surplus(s: PoolState) -> bool:
    if s.r_status is not RState.BELOW_ONE:
        return True
    return s.quote_reserve > s.quote_target and s.base_reserve <= s.base_target


INVARIANTS: dict[str, Callable[[PoolState], bool]] = {
    "k_in_range": inv_k_in_range,
    "fee_rates_below_one": inv_fee_rates_below_one,
    "one_at_targets": inv_one_at_targets,
    "above_one_base_surplus": inv_above_one_base_surplus,
    "below_one_quote_surplus": inv_below_one_quote_surplus,
}


def check_invariants(s: PoolState) -> list[str]:
    """Return the ids of all invariants the snapshot violates."""
    return [name for name, check in INVARIANTS.items() if not check(s)]


def assert_invariants(s: PoolState) -> None:
    """Raise InvariantViolation if the snapshot breaks any invariant."""
    violations = check_invariants(s)
    if violations:
        raise InvariantViolation(violations)
