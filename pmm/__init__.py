"""PMM Engine - proportional market-maker pricing for a two-asset pool."""

from pmm.engine import MaintainerFees, PMMPool
from pmm.errors import (
    ArithmeticOverflow,
    DivisionByZero,
    FlashLoanFailed,
    InsufficientLiquidity,
    InvalidParameter,
    InvariantViolation,
    PMMError,
    PriceLimitExceeded,
    Underflow,
)
from pmm.flash import FlashLoanResult
from pmm.state import PoolParams, PoolState, RState, Side, TradeResult

__version__ = "0.1.0"
__all__ = [
    "PMMPool",
    "MaintainerFees",
    "PoolParams",
    "PoolState",
    "RState",
    "Side",
    "TradeResult",
    "FlashLoanResult",
    # Errors
    "PMMError",
    "ArithmeticOverflow",
    "Underflow",
    "DivisionByZero",
    "InsufficientLiquidity",
    "FlashLoanFailed",
    "InvalidParameter",
    "PriceLimitExceeded",
    "InvariantViolation",
    "__version__",
]
