"""Pool configuration, state snapshots and trade results.

PoolParams and PoolState are immutable. Every operation builds a new
snapshot and the engine swaps it in with a single assignment, so a failed
operation can never leave a partially updated pool behind.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from pmm.constants import ONE, ONE2
from pmm.errors import InvalidParameter


class RState(str, Enum):
    """Balance of the pool relative to its target reserves.

    ONE: both reserves equal their targets.
    ABOVE_ONE: base reserve is above its target (base surplus, quote deficit).
    BELOW_ONE: quote reserve is above its target (quote surplus, base deficit).
    """

    ONE = "ONE"
    ABOVE_ONE = "ABOVE_ONE"
    BELOW_ONE = "BELOW_ONE"


class Side(str, Enum):
    """Which asset the trader pays into the pool."""

    SELL_BASE = "sell_base"
    SELL_QUOTE = "sell_quote"


def require_amount(value: object, name: str) -> int:
    """Validate a non-negative integer amount at the API boundary.

    Raises:
        InvalidParameter: If value is not an int or is negative
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidParameter(
            f"{name} must be an integer, got {type(value).__name__}", "amount_integer"
        )
    if value < 0:
        raise InvalidParameter(f"{name} cannot be negative: {value}", "amount_non_negative")
    return value


@dataclass(frozen=True)
class PoolParams:
    """Pricing configuration of a pool.

    All values are 18-decimal fixed point.

    Attributes:
        i: Reference price of one base unit in quote units (0 < i <= 10^36)
        k: Slippage factor, 0 = constant price, ONE = constant product
        lp_fee_rate: Fee retained by the pool
        mt_fee_rate: Fee routed to the maintainer
    """

    i: int
    k: int
    lp_fee_rate: int = 0
    mt_fee_rate: int = 0

    def __post_init__(self) -> None:
        require_amount(self.i, "i")
        require_amount(self.k, "k")
        require_amount(self.lp_fee_rate, "lp_fee_rate")
        require_amount(self.mt_fee_rate, "mt_fee_rate")
        if self.i == 0 or self.i > ONE2:
            raise InvalidParameter(f"Reference price out of range: {self.i}", "i_range")
        if self.k > ONE:
            raise InvalidParameter(f"k must be within [0, 1]: {self.k}", "k_range")
        if self.lp_fee_rate + self.mt_fee_rate >= ONE:
            raise InvalidParameter(
                f"Fee rates must sum to less than 1: "
                f"lp={self.lp_fee_rate} mt={self.mt_fee_rate}",
                "fee_rate_sum",
            )


@dataclass(frozen=True)
class PoolState:
    """Snapshot of a pool: reserves, targets, R-status and parameters."""

    base_reserve: int
    quote_reserve: int
    base_target: int
    quote_target: int
    r_status: RState
    params: PoolParams

    def __post_init__(self) -> None:
        require_amount(self.base_reserve, "base_reserve")
        require_amount(self.quote_reserve, "quote_reserve")
        require_amount(self.base_target, "base_target")
        require_amount(self.quote_target, "quote_target")
        if not isinstance(self.r_status, RState):
            raise InvalidParameter(f"Unknown R-status: {self.r_status!r}", "r_status")

    @classmethod
    def balanced(cls, base_reserve: int, quote_reserve: int, params: PoolParams) -> PoolState:
        """Create a balanced (R = ONE) snapshot whose targets equal its reserves."""
        return cls(
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            base_target=base_reserve,
            quote_target=quote_reserve,
            r_status=RState.ONE,
            params=params,
        )

    @classmethod
    def from_targets(
        cls,
        base_reserve: int,
        quote_reserve: int,
        base_target: int,
        quote_target: int,
        params: PoolParams,
    ) -> PoolState:
        """Create a snapshot at explicit targets, inferring the R-status.

        Reserves equal to both targets give ONE. A base surplus needs the
        quote reserve at or below its target (ABOVE_ONE), a quote surplus
        needs the base reserve at or below its target (BELOW_ONE).

        Raises:
            InvalidParameter: If the targets fit none of the three states
        """
        require_amount(base_target, "base_target")
        require_amount(quote_target, "quote_target")
        if base_reserve == base_target and quote_reserve == quote_target:
            r_status = RState.ONE
        elif base_reserve > base_target and quote_reserve <= quote_target:
            r_status = RState.ABOVE_ONE
        elif quote_reserve > quote_target and base_reserve <= base_target:
            r_status = RState.BELOW_ONE
        else:
            raise InvalidParameter(
                f"Targets ({base_target}, {quote_target}) do not match reserves "
                f"({base_reserve}, {quote_reserve}) in any R-status",
                "targets_match_r_status",
            )
        return cls(
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            base_target=base_target,
            quote_target=quote_target,
            r_status=r_status,
            params=params,
        )

    def rebalanced(self, base_reserve: int, quote_reserve: int) -> PoolState:
        """Return an R = ONE snapshot at the given reserves, resetting both targets."""
        return replace(
            self,
            base_reserve=base_reserve,
            quote_reserve=quote_reserve,
            base_target=base_reserve,
            quote_target=quote_reserve,
            r_status=RState.ONE,
        )


@dataclass(frozen=True)
class TradeResult:
    """Outcome of pricing one trade.

    Attributes:
        side: Which asset was paid in
        pay_amount: Amount paid into the pool
        counter_amount: Amount delivered to the trader after fees
        lp_fee: Fee kept in the pool's output reserve
        mt_fee: Fee routed to the maintainer
        gross_amount: Raw curve output before fees
        new_r_status: R-status after the trade
        state: Snapshot the pool moves to if the trade executes
    """

    side: Side
    pay_amount: int
    counter_amount: int
    lp_fee: int
    mt_fee: int
    gross_amount: int
    new_r_status: RState
    state: PoolState

    @property
    def pool_outflow(self) -> int:
        """Amount that leaves the pool's output reserve (trader + maintainer)."""
        return self.counter_amount + self.mt_fee
