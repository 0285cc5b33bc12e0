"""Tests for the stateful PMMPool."""

import pytest
from structlog.testing import capture_logs

from pmm.constants import ONE
from pmm.engine import MaintainerFees, PMMPool
from pmm.errors import (
    FlashLoanFailed,
    InsufficientLiquidity,
    InvalidParameter,
    PMMError,
    PriceLimitExceeded,
)
from pmm.state import RState
from tests.helpers import make_params


class TestCreate:
    """Tests for PMMPool.create."""

    def test_balanced_on_creation(self, fee_pool):
        """A new pool starts at ONE with targets equal to reserves."""
        state = fee_pool.state
        assert state.r_status is RState.ONE
        assert state.base_target == state.base_reserve == 10 * ONE
        assert state.quote_target == state.quote_reserve == 1000 * ONE
        assert fee_pool.maintainer_fees == MaintainerFees()

    def test_invalid_parameters(self):
        """Out-of-domain parameters are rejected at creation."""
        with pytest.raises(InvalidParameter):
            PMMPool.create(10 * ONE, 1000 * ONE, i=0, k=0)


class TestQueries:
    """Tests for pool queries."""

    def test_query_does_not_mutate(self, pool):
        """Queries leave the pool snapshot untouched."""
        before = pool.state
        pool.query_sell_quote(100 * ONE)
        pool.query_sell_base(ONE)
        assert pool.state is before

    def test_query_matches_execution(self, fee_pool):
        """A query and the matching execution are identical."""
        preview = fee_pool.query_sell_quote(100 * ONE)
        executed = fee_pool.sell_quote(100 * ONE)
        assert preview == executed
        assert fee_pool.state == preview.state

    def test_mid_price(self, fee_pool):
        """Mid price starts at i and rises after base is bought out."""
        assert fee_pool.mid_price() == 100 * ONE
        fee_pool.sell_quote(100 * ONE)
        assert fee_pool.mid_price() == 102315414953355674800


class TestTrades:
    """Tests for sell_base / sell_quote."""

    def test_reference_scenario(self, pool):
        """Selling 100 quote twice into the reference pool."""
        first = pool.sell_quote(100 * ONE)
        second = pool.sell_quote(100 * ONE)
        assert first.counter_amount == 987163684234276925
        assert second.counter_amount == 961561238476353234
        assert pool.state.quote_reserve == 1200 * ONE

    def test_maintainer_fees_accrue(self, fee_pool):
        """Maintainer fees are tallied per asset and only grow."""
        fee_pool.sell_quote(100 * ONE)
        assert fee_pool.maintainer_fees.base == 989141968170618
        fee_pool.sell_base(ONE)
        assert fee_pool.maintainer_fees.base == 989141968170618
        assert fee_pool.maintainer_fees.quote > 0

    def test_min_receive_met(self, fee_pool):
        """An exact min_receive is accepted."""
        result = fee_pool.sell_quote(100 * ONE, min_receive=986174542266106307)
        assert result.counter_amount == 986174542266106307

    def test_min_receive_missed(self, fee_pool):
        """A min_receive above the output fails without mutating the pool."""
        before = fee_pool.state
        with pytest.raises(PriceLimitExceeded):
            fee_pool.sell_quote(100 * ONE, min_receive=986174542266106308)
        assert fee_pool.state is before
        assert fee_pool.maintainer_fees == MaintainerFees()

    def test_rejected_trade_leaves_state(self):
        """A failed trade is logged and leaves the pool unchanged."""
        pool = PMMPool.create(10 * ONE, 0, i=100 * ONE, k=ONE // 10)
        before = pool.state
        with capture_logs() as logs:
            with pytest.raises(InsufficientLiquidity):
                pool.sell_base(ONE)
        assert pool.state is before
        assert any(log["event"] == "trade_rejected" for log in logs)

    def test_zero_trade(self, fee_pool):
        """Zero-input trades change nothing."""
        before = fee_pool.state
        result = fee_pool.sell_base(0)
        assert result.counter_amount == 0
        assert fee_pool.state is before


class TestFlashLoan:
    """Tests for PMMPool.flash_loan."""

    def test_successful_loan(self, fee_pool):
        """A loan paid back through a quote deposit settles."""
        borrowed = 1940940772063889122

        def borrower(base_amount, quote_amount):
            state = fee_pool.state
            return state.base_reserve - base_amount, state.quote_reserve + 200 * ONE

        result = fee_pool.flash_loan(borrowed, 0, borrower)
        assert result.base_mt_fee == 3893562230820238
        assert fee_pool.state.base_reserve == 8055165665705290640
        assert fee_pool.maintainer_fees.base == 3893562230820238

    def test_loan_fee_tallied(self, fee_pool):
        """The maintainer share of a plain loan fee is tallied, the lp share stays."""
        fee_pool.flash_loan(ONE, 0, lambda b, q: (10 * ONE + 3 * 10**15, 1000 * ONE))
        assert fee_pool.maintainer_fees.base == 10**15
        assert fee_pool.state.base_reserve == 10 * ONE + 2 * 10**15

    def test_failed_loan_leaves_state(self, fee_pool):
        """A short repayment fails and leaves the reserves unchanged."""
        before = fee_pool.state
        with pytest.raises(FlashLoanFailed):
            fee_pool.flash_loan(
                ONE, 0, lambda b, q: (before.base_reserve - b, before.quote_reserve)
            )
        assert fee_pool.state is before

    def test_loan_above_reserve(self, fee_pool):
        """The callback is never called for an unaffordable loan."""
        calls = []
        with pytest.raises(InsufficientLiquidity):
            fee_pool.flash_loan(11 * ONE, 0, lambda b, q: calls.append((b, q)))
        assert calls == []

    def test_callback_exception_propagates(self, fee_pool):
        """Errors raised by the borrower propagate and the pool stays usable."""
        before = fee_pool.state

        def exploding(base_amount, quote_amount):
            raise RuntimeError("borrower failed")

        with pytest.raises(RuntimeError):
            fee_pool.flash_loan(ONE, 0, exploding)
        assert fee_pool.state is before
        assert fee_pool.sell_base(ONE).counter_amount > 0

    def test_reentrant_trade_rejected(self, fee_pool):
        """Trading from inside the callback is rejected; queries are allowed."""
        quotes = []

        def reentrant(base_amount, quote_amount):
            quotes.append(fee_pool.query_sell_base(ONE).counter_amount)
            fee_pool.sell_base(ONE)
            return fee_pool.state.base_reserve, fee_pool.state.quote_reserve

        with pytest.raises(PMMError) as exc_info:
            fee_pool.flash_loan(0, 0, reentrant)
        assert exc_info.value.invariant == "not_reentrant"
        assert quotes == [98617454226610630662]


class TestReset:
    """Tests for PMMPool.reset."""

    def test_reset_rebalances(self, fee_pool):
        """Reset after trading returns the pool to ONE at its current reserves."""
        fee_pool.sell_quote(100 * ONE)
        reserves = (fee_pool.state.base_reserve, fee_pool.state.quote_reserve)
        new_state = fee_pool.reset(make_params(i=110 * ONE))
        assert new_state.r_status is RState.ONE
        assert (new_state.base_target, new_state.quote_target) == reserves
        assert fee_pool.params.i == 110 * ONE
        assert fee_pool.mid_price() == 110 * ONE

    def test_reset_with_deposits_and_withdrawals(self, fee_pool):
        """Deposits are credited and withdrawals paid before rebalancing."""
        new_state = fee_pool.reset(make_params(), base_in=ONE, quote_out=100 * ONE)
        assert new_state.base_reserve == 11 * ONE
        assert new_state.quote_reserve == 900 * ONE

    def test_withdraw_too_much(self, fee_pool):
        """Withdrawing more than the balance fails."""
        before = fee_pool.state
        with pytest.raises(InsufficientLiquidity):
            fee_pool.reset(make_params(), base_out=10 * ONE + 1)
        assert fee_pool.state is before

    def test_min_reserve_guard(self, fee_pool):
        """Reset fails when a reserve would end below its minimum."""
        with pytest.raises(InsufficientLiquidity) as exc_info:
            fee_pool.reset(make_params(), quote_out=ONE, min_quote_reserve=1000 * ONE)
        assert exc_info.value.invariant == "min_reserve"

    def test_reset_logged(self, fee_pool):
        """Successful resets are logged with the new reserves."""
        with capture_logs() as logs:
            fee_pool.reset(make_params())
        events = [log for log in logs if log["event"] == "pool_reset"]
        assert events and events[0]["base_reserve"] == 10 * ONE


class TestResetTargets:
    """Tests for PMMPool.reset with explicit targets."""

    def test_base_surplus_targets(self, fee_pool):
        """A base target below the reserve puts the pool in ABOVE_ONE."""
        new_state = fee_pool.reset(make_params(), base_target=9 * ONE, quote_target=1010 * ONE)
        assert new_state.r_status is RState.ABOVE_ONE
        assert (new_state.base_target, new_state.quote_target) == (9 * ONE, 1010 * ONE)
        assert fee_pool.mid_price() < 100 * ONE

    def test_quote_surplus_targets(self, fee_pool):
        """A quote target below the reserve puts the pool in BELOW_ONE."""
        new_state = fee_pool.reset(make_params(), base_target=11 * ONE, quote_target=990 * ONE)
        assert new_state.r_status is RState.BELOW_ONE
        assert fee_pool.mid_price() > 100 * ONE

    def test_missing_target_defaults_to_reserve(self, fee_pool):
        """Only a quote target given: the base target stays at the base reserve."""
        new_state = fee_pool.reset(make_params(), quote_target=990 * ONE)
        assert new_state.r_status is RState.BELOW_ONE
        assert new_state.base_target == 10 * ONE

    def test_targets_at_reserves_are_balanced(self, fee_pool):
        """Targets equal to the reserves give ONE."""
        new_state = fee_pool.reset(make_params(), base_target=10 * ONE, quote_target=1000 * ONE)
        assert new_state.r_status is RState.ONE

    def test_targets_after_withdrawal(self, fee_pool):
        """Targets are checked against the reserves left after withdrawals."""
        new_state = fee_pool.reset(
            make_params(), base_out=ONE, base_target=9 * ONE, quote_target=1000 * ONE
        )
        assert new_state.r_status is RState.ONE

    def test_pool_trades_after_target_reset(self, fee_pool):
        """Selling quote into a base surplus restores toward balance."""
        fee_pool.reset(make_params(), base_target=9 * ONE, quote_target=1010 * ONE)
        result = fee_pool.sell_quote(10 * ONE)
        assert result.counter_amount > 0
        assert fee_pool.state.base_target == 9 * ONE

    def test_two_deficits_rejected(self, fee_pool):
        """Both targets above their reserves match no R-status."""
        before = fee_pool.state
        with pytest.raises(InvalidParameter) as exc_info:
            fee_pool.reset(make_params(), base_target=11 * ONE, quote_target=1010 * ONE)
        assert exc_info.value.invariant == "targets_match_r_status"
        assert fee_pool.state is before

    def test_two_surpluses_rejected(self, fee_pool):
        """Both targets below their reserves match no R-status."""
        with pytest.raises(InvalidParameter):
            fee_pool.reset(make_params(), base_target=9 * ONE, quote_target=990 * ONE)

    def test_negative_target_rejected(self, fee_pool):
        """Targets are amounts and cannot be negative."""
        with pytest.raises(InvalidParameter):
            fee_pool.reset(make_params(), base_target=-1)
