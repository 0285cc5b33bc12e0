"""Fee and settlement layer.

Usage:
    from pmm.fees import split_fees_for

    split = split_fees_for(gross, pool_state.params)
    trader_gets = split.receive_amount
"""

from pmm.fees.calculator import split_fees, split_fees_for
from pmm.fees.result import FeeSplit

__all__ = [
    "FeeSplit",
    "split_fees",
    "split_fees_for",
]
