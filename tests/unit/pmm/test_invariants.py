"""Tests for pool invariant checks."""

import pytest

from pmm.constants import ONE
from pmm.errors import InvariantViolation
from pmm.invariants import assert_invariants, check_invariants
from pmm.state import RState
from tests.helpers import make_state


class TestCheckInvariants:
    """Tests for check_invariants."""

    def test_balanced_state_passes(self):
        """A fresh balanced pool satisfies every invariant."""
        assert check_invariants(make_state()) == []

    def test_one_requires_reserves_at_targets(self):
        """R = ONE with a reserve away from its target is flagged."""
        state = make_state(base_reserve=11 * ONE, base_target=10 * ONE)
        assert check_invariants(state) == ["one_at_targets"]

    def test_above_one_requires_base_surplus(self):
        """ABOVE_ONE needs base above target and quote at or below target."""
        valid = make_state(
            base_reserve=11 * ONE,
            quote_reserve=900 * ONE,
            base_target=10 * ONE,
            quote_target=1000 * ONE,
            r_status=RState.ABOVE_ONE,
        )
        assert check_invariants(valid) == []

        no_surplus = make_state(
            base_reserve=10 * ONE,
            quote_reserve=900 * ONE,
            base_target=10 * ONE,
            quote_target=1000 * ONE,
            r_status=RState.ABOVE_ONE,
        )
        assert check_invariants(no_surplus) == ["above_one_base_surplus"]

    def test_below_one_requires_quote_surplus(self):
        """BELOW_ONE needs quote above target and base at or below target."""
        valid = make_state(
            base_reserve=9 * ONE,
            quote_reserve=1100 * ONE,
            base_target=10 * ONE,
            quote_target=1000 * ONE,
            r_status=RState.BELOW_ONE,
        )
        assert check_invariants(valid) == []

        both_surplus = make_state(
            base_reserve=11 * ONE,
            quote_reserve=1100 * ONE,
            base_target=10 * ONE,
            quote_target=1000 * ONE,
            r_status=RState.BELOW_ONE,
        )
        assert check_invariants(both_surplus) == ["below_one_quote_surplus"]


class TestAssertInvariants:
    """Tests for assert_invariants."""

    def test_valid_state_returns_none(self):
        """No exception for a valid state."""
        assert_invariants(make_state())

    def test_violation_lists_ids(self):
        """The raised error carries the violated invariant ids."""
        state = make_state(quote_reserve=999 * ONE, quote_target=1000 * ONE)
        with pytest.raises(InvariantViolation) as exc_info:
            assert_invariants(state)
        assert exc_info.value.violations == ["one_at_targets"]
        assert exc_info.value.invariant == "pool_invariants"
