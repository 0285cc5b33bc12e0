"""Fee split result type."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FeeSplit:
    """Division of a gross curve output between trader, pool and maintainer.

    Attributes:
        gross_amount: Raw curve output before fees
        receive_amount: Amount delivered to the trader
        lp_fee: Portion retained by the pool's output reserve
        mt_fee: Portion routed to the maintainer

    Examples:
        split = FeeSplit(gross_amount=1000, receive_amount=997, lp_fee=2, mt_fee=1)
        assert split.pool_outflow == 998
    """

    gross_amount: int
    receive_amount: int
    lp_fee: int
    mt_fee: int

    @property
    def pool_outflow(self) -> int:
        """Amount leaving the output reserve (trader plus maintainer)."""
        return self.receive_amount + self.mt_fee

    @property
    def total_fee(self) -> int:
        return self.lp_fee + self.mt_fee

    @classmethod
    def zero(cls) -> "FeeSplit":
        """Create the split for an empty trade."""
        return cls(gross_amount=0, receive_amount=0, lp_fee=0, mt_fee=0)
