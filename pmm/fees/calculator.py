"""Fee calculation for PMM trades.

Both fees are taken from the gross output with floor rounding, so the trader
receives whatever is left after the truncated fees:

    mt_fee = gross * mt_fee_rate // 10^18
    lp_fee = gross * lp_fee_rate // 10^18
    receive = gross - lp_fee - mt_fee

Uses SafeInt so a fee sum above the gross amount raises Underflow instead of
producing a negative receive amount.
"""

from __future__ import annotations

from pmm.fees.result import FeeSplit
from pmm.math.decimal_math import mul_floor
from pmm.safe_int import S
from pmm.state import PoolParams


def split_fees(gross_amount: int, lp_fee_rate: int, mt_fee_rate: int) -> FeeSplit:
    """Split a gross curve output into receive amount and fees.

    Args:
        gross_amount: Raw curve output
        lp_fee_rate: Pool fee rate (18-decimal fixed point)
        mt_fee_rate: Maintainer fee rate (18-decimal fixed point)

    Returns:
        FeeSplit with receive_amount + lp_fee + mt_fee == gross_amount
    """
    if gross_amount == 0:
        return FeeSplit.zero()

    mt_fee = mul_floor(gross_amount, mt_fee_rate)
    lp_fee = mul_floor(gross_amount, lp_fee_rate)
    receive_amount = (S(gross_amount) - S(lp_fee) - S(mt_fee)).value
    return FeeSplit(
        gross_amount=gross_amount,
        receive_amount=receive_amount,
        lp_fee=lp_fee,
        mt_fee=mt_fee,
    )


def split_fees_for(gross_amount: int, params: PoolParams) -> FeeSplit:
    """Split a gross output using the pool's configured fee rates."""
    return split_fees(gross_amount, params.lp_fee_rate, params.mt_fee_rate)
