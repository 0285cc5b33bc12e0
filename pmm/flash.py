"""Flash loans: borrow, run a callback, settle against the curve.

The borrower receives the requested amounts, runs arbitrary logic in the
callback and reports the pool's balances afterwards. Each borrowed amount
owes a fee at the pool's trade rates, as if it were the output of a sell:

    required = reserve + lp_fee(borrowed) + mt_fee(borrowed)

Settlement compares the balances with these requirements. A surplus
returned on one side may pay for a shortfall on the other side as a trade:

- both balances below their requirement: the loan fails
- base short: the quote surplus over its requirement is priced as a
  sell-quote trade, and the base shortfall must not exceed what that trade
  would deliver
- quote short: mirror image with a sell-base trade
- neither short: anything above the requirement is kept by the pool

The maintainer share of the borrow fees (and of the covering trade, if any)
leaves the reserves; everything else stays in the pool. Settlement is the
only repayment gate. Nothing is committed before it passes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import structlog

from pmm.errors import FlashLoanFailed, InsufficientLiquidity
from pmm.fees import FeeSplit, split_fees_for
from pmm.pricing import adjusted_target
from pmm.safe_int import S
from pmm.state import PoolState, RState, require_amount
from pmm.state_machine import transition_state
from pmm.trading import query_sell_base, query_sell_quote

logger = structlog.get_logger()


class FlashLoanCallback(Protocol):
    """Borrower logic executed while the loan is outstanding."""

    def __call__(self, base_amount: int, quote_amount: int) -> tuple[int, int]:
        """Run borrower logic.

        Args:
            base_amount: Base borrowed from the pool
            quote_amount: Quote borrowed from the pool

        Returns:
            Tuple of (base_balance, quote_balance) held by the pool after the
            borrower has repaid, as reported by the custody layer
        """
        ...


@dataclass(frozen=True)
class FlashLoanResult:
    """Outcome of a settled flash loan.

    Attributes:
        base_amount: Base borrowed
        quote_amount: Quote borrowed
        base_loan_fee: Fee due on the base loan
        quote_loan_fee: Fee due on the quote loan
        base_mt_fee: Maintainer fee taken in base, loan and trade
        quote_mt_fee: Maintainer fee taken in quote, loan and trade
        new_r_status: R-status after settlement
        state: Snapshot the pool moves to
    """

    base_amount: int
    quote_amount: int
    base_loan_fee: FeeSplit
    quote_loan_fee: FeeSplit
    base_mt_fee: int
    quote_mt_fee: int
    new_r_status: RState
    state: PoolState


def check_borrowable(state: PoolState, base_amount: int, quote_amount: int) -> None:
    """Reject loans larger than the current reserves.

    Raises:
        InvalidParameter: If an amount is negative
        InsufficientLiquidity: If an amount exceeds its reserve
    """
    require_amount(base_amount, "base_amount")
    require_amount(quote_amount, "quote_amount")
    if base_amount > state.base_reserve:
        raise InsufficientLiquidity(
            f"Cannot borrow {base_amount} base from reserve {state.base_reserve}"
        )
    if quote_amount > state.quote_reserve:
        raise InsufficientLiquidity(
            f"Cannot borrow {quote_amount} quote from reserve {state.quote_reserve}"
        )


def settle_flash_loan(
    state: PoolState,
    base_amount: int,
    quote_amount: int,
    base_balance: int,
    quote_balance: int,
) -> FlashLoanResult:
    """Validate post-callback balances and compute the settled snapshot.

    Args:
        state: Pool snapshot before the loan
        base_amount: Base that was borrowed
        quote_amount: Quote that was borrowed
        base_balance: Base held by the pool after the callback
        quote_balance: Quote held by the pool after the callback

    Returns:
        FlashLoanResult carrying the snapshot to commit

    Raises:
        FlashLoanFailed: If the balances do not pay for the borrowed amounts
            plus their fees
    """
    require_amount(base_balance, "base_balance")
    require_amount(quote_balance, "quote_balance")

    base_fee = split_fees_for(base_amount, state.params)
    quote_fee = split_fees_for(quote_amount, state.params)
    base_required = (S(state.base_reserve) + S(base_fee.total_fee)).value
    quote_required = (S(state.quote_reserve) + S(quote_fee.total_fee)).value

    base_short = base_balance < base_required
    quote_short = quote_balance < quote_required
    base_mt_fee = base_fee.mt_fee
    quote_mt_fee = quote_fee.mt_fee

    if base_short and quote_short:
        raise FlashLoanFailed(
            f"Both balances below repayment: base {base_balance} < {base_required}, "
            f"quote {quote_balance} < {quote_required}"
        )

    if base_short:
        quote_input = quote_balance - quote_required
        trade = query_sell_quote(state, quote_input)
        shortfall = base_required - base_balance
        if shortfall > trade.counter_amount:
            raise FlashLoanFailed(
                f"Base shortfall {shortfall} exceeds {trade.counter_amount} "
                f"bought by {quote_input} quote"
            )
        base_mt_fee += trade.mt_fee
        new_r_status = trade.new_r_status
    elif quote_short:
        base_input = base_balance - base_required
        trade = query_sell_base(state, base_input)
        shortfall = quote_required - quote_balance
        if shortfall > trade.counter_amount:
            raise FlashLoanFailed(
                f"Quote shortfall {shortfall} exceeds {trade.counter_amount} "
                f"bought by {base_input} base"
            )
        quote_mt_fee += trade.mt_fee
        new_r_status = trade.new_r_status
    else:
        new_r_status = state.r_status

    # Reserves end at or above the covering trade's post-trade reserves
    new_state = transition_state(
        adjusted_target(state, round_up=True),
        (S(base_balance) - S(base_mt_fee)).value,
        (S(quote_balance) - S(quote_mt_fee)).value,
        new_r_status,
    )
    logger.debug(
        "flash_loan_settled",
        base_amount=base_amount,
        quote_amount=quote_amount,
        base_loan_fee=base_fee.total_fee,
        quote_loan_fee=quote_fee.total_fee,
        base_mt_fee=base_mt_fee,
        quote_mt_fee=quote_mt_fee,
        r_status=new_state.r_status.value,
    )
    return FlashLoanResult(
        base_amount=base_amount,
        quote_amount=quote_amount,
        base_loan_fee=base_fee,
        quote_loan_fee=quote_fee,
        base_mt_fee=base_mt_fee,
        quote_mt_fee=quote_mt_fee,
        new_r_status=new_state.r_status,
        state=new_state,
    )
