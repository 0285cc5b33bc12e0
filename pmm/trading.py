"""Pure trade pricing: curve solver, fee split and state transition.

Queries never mutate anything. The engine executes a trade by swapping in the
`state` carried by the returned TradeResult, so a query and the matching
execution are bit-identical by construction.
"""

from __future__ import annotations

from pmm.errors import InsufficientLiquidity
from pmm.fees import split_fees_for
from pmm.pricing import adjusted_target, sell_base_token, sell_quote_token
from pmm.safe_int import S
from pmm.state import PoolState, Side, TradeResult, require_amount
from pmm.state_machine import transition_state


def _empty_trade(state: PoolState, side: Side) -> TradeResult:
    return TradeResult(
        side=side,
        pay_amount=0,
        counter_amount=0,
        lp_fee=0,
        mt_fee=0,
        gross_amount=0,
        new_r_status=state.r_status,
        state=state,
    )


def query_sell_base(state: PoolState, pay_base: int) -> TradeResult:
    """Price selling `pay_base` base tokens into the pool.

    Args:
        state: Current pool snapshot (targets as stored)
        pay_base: Base amount already deposited by the trader

    Returns:
        TradeResult with the quote amount for the trader, fees and the
        resulting snapshot

    Raises:
        InvalidParameter: If pay_base is negative or not an integer
        InsufficientLiquidity: If the gross output exceeds the quote reserve
    """
    require_amount(pay_base, "pay_base")
    if pay_base == 0:
        return _empty_trade(state, Side.SELL_BASE)

    gross_quote, new_r_status = sell_base_token(state, pay_base)
    # An overshoot keeps the ceiled crossover point as the new surplus target
    adjusted = adjusted_target(state, round_up=True)
    if gross_quote > adjusted.quote_reserve:
        raise InsufficientLiquidity(
            f"Output {gross_quote} exceeds quote reserve {adjusted.quote_reserve}"
        )

    split = split_fees_for(gross_quote, adjusted.params)
    new_state = transition_state(
        adjusted,
        (S(adjusted.base_reserve) + S(pay_base)).value,
        (S(adjusted.quote_reserve) - S(split.pool_outflow)).value,
        new_r_status,
    )
    return TradeResult(
        side=Side.SELL_BASE,
        pay_amount=pay_base,
        counter_amount=split.receive_amount,
        lp_fee=split.lp_fee,
        mt_fee=split.mt_fee,
        gross_amount=gross_quote,
        new_r_status=new_state.r_status,
        state=new_state,
    )


def query_sell_quote(state: PoolState, pay_quote: int) -> TradeResult:
    """Price selling `pay_quote` quote tokens into the pool.

    Mirror image of query_sell_base.

    Raises:
        InvalidParameter: If pay_quote is negative or not an integer
        InsufficientLiquidity: If the gross output exceeds the base reserve
    """
    require_amount(pay_quote, "pay_quote")
    if pay_quote == 0:
        return _empty_trade(state, Side.SELL_QUOTE)

    gross_base, new_r_status = sell_quote_token(state, pay_quote)
    adjusted = adjusted_target(state, round_up=True)
    if gross_base > adjusted.base_reserve:
        raise InsufficientLiquidity(
            f"Output {gross_base} exceeds base reserve {adjusted.base_reserve}"
        )

    split = split_fees_for(gross_base, adjusted.params)
    new_state = transition_state(
        adjusted,
        (S(adjusted.base_reserve) - S(split.pool_outflow)).value,
        (S(adjusted.quote_reserve) + S(pay_quote)).value,
        new_r_status,
    )
    return TradeResult(
        side=Side.SELL_QUOTE,
        pay_amount=pay_quote,
        counter_amount=split.receive_amount,
        lp_fee=split.lp_fee,
        mt_fee=split.mt_fee,
        gross_amount=gross_base,
        new_r_status=new_state.r_status,
        state=new_state,
    )
