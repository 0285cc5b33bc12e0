"""Stateful PMM pool.

PMMPool holds one immutable PoolState snapshot and replaces it in a single
assignment once an operation has fully succeeded. Every error is raised
before that assignment, so a rejected trade, loan or reset leaves the pool
exactly as it was.

The pool is synchronous and not thread-safe. Callers that share a pool
between threads serialize the mutating methods (see ``pmm.api``).
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from pmm.errors import InsufficientLiquidity, PMMError, PriceLimitExceeded
from pmm.flash import (
    FlashLoanCallback,
    FlashLoanResult,
    check_borrowable,
    settle_flash_loan,
)
from pmm.invariants import assert_invariants
from pmm.pricing import adjusted_target, mid_price
from pmm.safe_int import S
from pmm.state import PoolParams, PoolState, Side, TradeResult, require_amount
from pmm.trading import query_sell_base, query_sell_quote

logger = structlog.get_logger()


@dataclass(frozen=True)
class MaintainerFees:
    """Running totals of maintainer fees taken out of the pool."""

    base: int = 0
    quote: int = 0

    def add(self, base: int = 0, quote: int = 0) -> MaintainerFees:
        return MaintainerFees(
            base=(S(self.base) + S(base)).value,
            quote=(S(self.quote) + S(quote)).value,
        )


class PMMPool:
    """A single two-asset PMM pool.

    Amounts passed in are assumed to be already deposited by the caller;
    amounts returned are what the custody layer must transfer out.

    Attributes:
        state: Current pool snapshot
        maintainer_fees: Accumulated maintainer fees per asset
    """

    def __init__(self, state: PoolState) -> None:
        assert_invariants(state)
        self._state = state
        self._maintainer_fees = MaintainerFees()
        self._in_flash_loan = False

    @classmethod
    def create(
        cls,
        base_reserve: int,
        quote_reserve: int,
        i: int,
        k: int,
        lp_fee_rate: int = 0,
        mt_fee_rate: int = 0,
    ) -> PMMPool:
        """Create a balanced pool with targets equal to the initial reserves.

        Raises:
            InvalidParameter: If any parameter is outside its domain
        """
        params = PoolParams(i=i, k=k, lp_fee_rate=lp_fee_rate, mt_fee_rate=mt_fee_rate)
        pool = cls(PoolState.balanced(base_reserve, quote_reserve, params))
        logger.info(
            "pool_created",
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            i=i,
            k=k,
        )
        return pool

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def params(self) -> PoolParams:
        return self._state.params

    @property
    def maintainer_fees(self) -> MaintainerFees:
        return self._maintainer_fees

    def adjusted_state(self) -> PoolState:
        """Current snapshot with the deficit side's target recomputed."""
        return adjusted_target(self._state)

    def mid_price(self) -> int:
        """Marginal price of one base unit in quote units (18-decimal fixed point)."""
        return mid_price(self.adjusted_state())

    # --- Queries ---

    def query_sell_base(self, pay_base: int) -> TradeResult:
        """Preview selling base. Never mutates the pool."""
        return query_sell_base(self._state, pay_base)

    def query_sell_quote(self, pay_quote: int) -> TradeResult:
        """Preview selling quote. Never mutates the pool."""
        return query_sell_quote(self._state, pay_quote)

    # --- Mutations ---

    def sell_base(self, pay_base: int, min_receive: int = 0) -> TradeResult:
        """Sell base into the pool and commit the new state.

        Args:
            pay_base: Base amount already deposited
            min_receive: Smallest acceptable quote amount for the trader

        Returns:
            TradeResult; counter_amount quote goes to the trader and mt_fee
            quote to the maintainer

        Raises:
            InvalidParameter: If an amount is invalid
            InsufficientLiquidity: If the pool cannot pay out
            PriceLimitExceeded: If the trader would receive less than min_receive
        """
        return self._execute(Side.SELL_BASE, pay_base, min_receive)

    def sell_quote(self, pay_quote: int, min_receive: int = 0) -> TradeResult:
        """Sell quote into the pool and commit the new state.

        Mirror image of sell_base; the trader receives base.
        """
        return self._execute(Side.SELL_QUOTE, pay_quote, min_receive)

    def _execute(self, side: Side, pay_amount: int, min_receive: int) -> TradeResult:
        self._guard_reentrancy(side.value)
        try:
            require_amount(min_receive, "min_receive")
            if side is Side.SELL_BASE:
                result = query_sell_base(self._state, pay_amount)
            else:
                result = query_sell_quote(self._state, pay_amount)
            if result.counter_amount < min_receive:
                raise PriceLimitExceeded(
                    f"Receive amount {result.counter_amount} below minimum {min_receive}"
                )
        except PMMError as e:
            logger.warning(
                "trade_rejected",
                side=side.value,
                pay_amount=pay_amount,
                invariant=e.invariant,
                error=e.detail,
            )
            raise

        self._state = result.state
        if side is Side.SELL_BASE:
            self._maintainer_fees = self._maintainer_fees.add(quote=result.mt_fee)
        else:
            self._maintainer_fees = self._maintainer_fees.add(base=result.mt_fee)

        logger.debug(
            "trade_executed",
            side=side.value,
            pay_amount=pay_amount,
            receive_amount=result.counter_amount,
            lp_fee=result.lp_fee,
            mt_fee=result.mt_fee,
            r_status=result.new_r_status.value,
        )
        return result

    def flash_loan(
        self,
        base_amount: int,
        quote_amount: int,
        callback: FlashLoanCallback,
    ) -> FlashLoanResult:
        """Lend reserves for the duration of `callback` and settle the outcome.

        The callback receives the borrowed amounts and returns the pool's
        balances after repayment. Mutating the pool from inside the callback
        is rejected.

        Raises:
            InsufficientLiquidity: If an amount exceeds its reserve
            FlashLoanFailed: If the returned balances do not pay for the loan
        """
        self._guard_reentrancy("flash_loan")
        try:
            check_borrowable(self._state, base_amount, quote_amount)
        except PMMError as e:
            logger.warning(
                "flash_loan_rejected",
                base_amount=base_amount,
                quote_amount=quote_amount,
                invariant=e.invariant,
                error=e.detail,
            )
            raise

        pre_state = self._state
        self._in_flash_loan = True
        try:
            base_balance, quote_balance = callback(base_amount, quote_amount)
        finally:
            self._in_flash_loan = False

        try:
            result = settle_flash_loan(
                pre_state, base_amount, quote_amount, base_balance, quote_balance
            )
        except PMMError as e:
            logger.warning(
                "flash_loan_failed",
                base_amount=base_amount,
                quote_amount=quote_amount,
                base_balance=base_balance,
                quote_balance=quote_balance,
                invariant=e.invariant,
                error=e.detail,
            )
            raise

        self._state = result.state
        self._maintainer_fees = self._maintainer_fees.add(
            base=result.base_mt_fee, quote=result.quote_mt_fee
        )
        logger.info(
            "flash_loan_executed",
            base_amount=base_amount,
            quote_amount=quote_amount,
            base_reserve=result.state.base_reserve,
            quote_reserve=result.state.quote_reserve,
            r_status=result.new_r_status.value,
        )
        return result

    def reset(
        self,
        params: PoolParams,
        base_in: int = 0,
        quote_in: int = 0,
        base_out: int = 0,
        quote_out: int = 0,
        min_base_reserve: int = 0,
        min_quote_reserve: int = 0,
        base_target: int | None = None,
        quote_target: int | None = None,
    ) -> PoolState:
        """Reprice the pool and rebalance it around its new reserves.

        Applies new parameters, credits deposits and pays out withdrawals.
        Without explicit targets both targets are reset to the resulting
        reserves with R-status ONE. With targets, a missing one defaults to
        its reserve and the R-status follows from the reserves.

        Args:
            params: New pool parameters (reference price, k, fee rates)
            base_in: Base deposited since the last operation
            quote_in: Quote deposited since the last operation
            base_out: Base withdrawn by the owner
            quote_out: Quote withdrawn by the owner
            min_base_reserve: Fail if the base reserve would end below this
            min_quote_reserve: Fail if the quote reserve would end below this
            base_target: Base target to install instead of the base reserve
            quote_target: Quote target to install instead of the quote reserve

        Returns:
            The new pool snapshot

        Raises:
            InsufficientLiquidity: If a withdrawal exceeds the available
                balance or a reserve would end below its minimum
            InvalidParameter: If the targets do not match the reserves in any
                R-status
        """
        self._guard_reentrancy("reset")
        try:
            for value, name in (
                (base_in, "base_in"),
                (quote_in, "quote_in"),
                (base_out, "base_out"),
                (quote_out, "quote_out"),
                (min_base_reserve, "min_base_reserve"),
                (min_quote_reserve, "min_quote_reserve"),
            ):
                require_amount(value, name)

            base_balance = (S(self._state.base_reserve) + S(base_in)).value
            quote_balance = (S(self._state.quote_reserve) + S(quote_in)).value
            if base_out > base_balance:
                raise InsufficientLiquidity(
                    f"Cannot withdraw {base_out} base from balance {base_balance}"
                )
            if quote_out > quote_balance:
                raise InsufficientLiquidity(
                    f"Cannot withdraw {quote_out} quote from balance {quote_balance}"
                )

            base_reserve = base_balance - base_out
            quote_reserve = quote_balance - quote_out
            if base_reserve < min_base_reserve or quote_reserve < min_quote_reserve:
                raise InsufficientLiquidity(
                    f"Reserves ({base_reserve}, {quote_reserve}) below minimum "
                    f"({min_base_reserve}, {min_quote_reserve})",
                    "min_reserve",
                )
            if base_target is None and quote_target is None:
                new_state = PoolState.balanced(base_reserve, quote_reserve, params)
            else:
                new_state = PoolState.from_targets(
                    base_reserve,
                    quote_reserve,
                    base_reserve if base_target is None else base_target,
                    quote_reserve if quote_target is None else quote_target,
                    params,
                )
        except PMMError as e:
            logger.warning("reset_rejected", invariant=e.invariant, error=e.detail)
            raise

        self._state = new_state
        logger.info(
            "pool_reset",
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            base_target=new_state.base_target,
            quote_target=new_state.quote_target,
            r_status=new_state.r_status.value,
            i=params.i,
            k=params.k,
            lp_fee_rate=params.lp_fee_rate,
            mt_fee_rate=params.mt_fee_rate,
        )
        return new_state

    def _guard_reentrancy(self, operation: str) -> None:
        if self._in_flash_loan:
            logger.warning("reentrant_call_rejected", operation=operation)
            raise PMMError(f"{operation} called during a flash loan", "not_reentrant")
