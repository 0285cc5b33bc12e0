"""Pydantic models for the pool service.

Amounts and rates travel as uint256 decimal strings scaled by 10^18, the
same representation the engine works in. Field names are camelCase on the
wire and snake_case in Python.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field

from pmm.engine import MaintainerFees, PMMPool
from pmm.flash import FlashLoanResult
from pmm.models.types import Uint256
from pmm.state import PoolParams, PoolState, RState, Side, TradeResult


class PoolParamsModel(BaseModel):
    """Pricing parameters of a pool."""

    i: Uint256
    k: Uint256
    lp_fee_rate: Uint256 = Field(default="0", alias="lpFeeRate")
    mt_fee_rate: Uint256 = Field(default="0", alias="mtFeeRate")

    model_config = {"populate_by_name": True}

    def to_params(self) -> PoolParams:
        """Build engine parameters.

        Raises:
            InvalidParameter: If the values are outside their domain
        """
        return PoolParams(
            i=int(self.i),
            k=int(self.k),
            lp_fee_rate=int(self.lp_fee_rate),
            mt_fee_rate=int(self.mt_fee_rate),
        )

    @classmethod
    def from_params(cls, params: PoolParams) -> PoolParamsModel:
        return cls(
            i=str(params.i),
            k=str(params.k),
            lp_fee_rate=str(params.lp_fee_rate),
            mt_fee_rate=str(params.mt_fee_rate),
        )


class PoolConfig(BaseModel):
    """Initial pool loaded at service startup."""

    base_reserve: Uint256 = Field(alias="baseReserve")
    quote_reserve: Uint256 = Field(alias="quoteReserve")
    params: PoolParamsModel

    model_config = {"populate_by_name": True}

    @classmethod
    def from_file(cls, path: str | Path) -> PoolConfig:
        """Load a pool configuration from a JSON file."""
        return cls.model_validate(json.loads(Path(path).read_text()))

    def build_pool(self) -> PMMPool:
        return PMMPool.create(
            base_reserve=int(self.base_reserve),
            quote_reserve=int(self.quote_reserve),
            i=int(self.params.i),
            k=int(self.params.k),
            lp_fee_rate=int(self.params.lp_fee_rate),
            mt_fee_rate=int(self.params.mt_fee_rate),
        )


class TradeRequest(BaseModel):
    """Sell request: `amount` is already deposited by the trader."""

    amount: Uint256
    min_receive: Uint256 = Field(default="0", alias="minReceive")

    model_config = {"populate_by_name": True}


class ResetRequest(BaseModel):
    """Reprice and rebalance the pool.

    Targets default to the resulting reserves; passing either one installs
    them as given and derives the R-status from the reserves.
    """

    params: PoolParamsModel
    base_in: Uint256 = Field(default="0", alias="baseIn")
    quote_in: Uint256 = Field(default="0", alias="quoteIn")
    base_out: Uint256 = Field(default="0", alias="baseOut")
    quote_out: Uint256 = Field(default="0", alias="quoteOut")
    min_base_reserve: Uint256 = Field(default="0", alias="minBaseReserve")
    min_quote_reserve: Uint256 = Field(default="0", alias="minQuoteReserve")
    base_target: Uint256 | None = Field(default=None, alias="baseTarget")
    quote_target: Uint256 | None = Field(default=None, alias="quoteTarget")

    model_config = {"populate_by_name": True}


class FlashLoanRequest(BaseModel):
    """Flash loan whose repayment is reported up front.

    The service has no custody of its own, so the caller states the pool's
    balances after the borrower's logic has run.
    """

    base_amount: Uint256 = Field(default="0", alias="baseAmount")
    quote_amount: Uint256 = Field(default="0", alias="quoteAmount")
    base_balance: Uint256 = Field(alias="baseBalance")
    quote_balance: Uint256 = Field(alias="quoteBalance")

    model_config = {"populate_by_name": True}


class PoolStateModel(BaseModel):
    """Snapshot of the pool as returned by the service."""

    base_reserve: Uint256 = Field(alias="baseReserve")
    quote_reserve: Uint256 = Field(alias="quoteReserve")
    base_target: Uint256 = Field(alias="baseTarget")
    quote_target: Uint256 = Field(alias="quoteTarget")
    r_status: RState = Field(alias="rStatus")
    params: PoolParamsModel

    model_config = {"populate_by_name": True}

    @classmethod
    def from_state(cls, state: PoolState) -> PoolStateModel:
        return cls(
            base_reserve=str(state.base_reserve),
            quote_reserve=str(state.quote_reserve),
            base_target=str(state.base_target),
            quote_target=str(state.quote_target),
            r_status=state.r_status,
            params=PoolParamsModel.from_params(state.params),
        )


class MaintainerFeesModel(BaseModel):
    base: Uint256
    quote: Uint256

    @classmethod
    def from_fees(cls, fees: MaintainerFees) -> MaintainerFeesModel:
        return cls(base=str(fees.base), quote=str(fees.quote))


class PoolResponse(BaseModel):
    """Pool snapshot plus derived values."""

    state: PoolStateModel
    mid_price: Uint256 = Field(alias="midPrice")
    maintainer_fees: MaintainerFeesModel = Field(alias="maintainerFees")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_pool(cls, pool: PMMPool) -> PoolResponse:
        return cls(
            state=PoolStateModel.from_state(pool.state),
            mid_price=str(pool.mid_price()),
            maintainer_fees=MaintainerFeesModel.from_fees(pool.maintainer_fees),
        )


class TradeResponse(BaseModel):
    """Outcome of a query or an executed trade."""

    side: Side
    pay_amount: Uint256 = Field(alias="payAmount")
    receive_amount: Uint256 = Field(alias="receiveAmount")
    lp_fee: Uint256 = Field(alias="lpFee")
    mt_fee: Uint256 = Field(alias="mtFee")
    gross_amount: Uint256 = Field(alias="grossAmount")
    new_r_status: RState = Field(alias="newRStatus")
    state: PoolStateModel

    model_config = {"populate_by_name": True}

    @classmethod
    def from_result(cls, result: TradeResult) -> TradeResponse:
        return cls(
            side=result.side,
            pay_amount=str(result.pay_amount),
            receive_amount=str(result.counter_amount),
            lp_fee=str(result.lp_fee),
            mt_fee=str(result.mt_fee),
            gross_amount=str(result.gross_amount),
            new_r_status=result.new_r_status,
            state=PoolStateModel.from_state(result.state),
        )


class FlashLoanResponse(BaseModel):
    """Outcome of a settled flash loan."""

    base_amount: Uint256 = Field(alias="baseAmount")
    quote_amount: Uint256 = Field(alias="quoteAmount")
    base_loan_fee: Uint256 = Field(alias="baseLoanFee")
    quote_loan_fee: Uint256 = Field(alias="quoteLoanFee")
    base_mt_fee: Uint256 = Field(alias="baseMtFee")
    quote_mt_fee: Uint256 = Field(alias="quoteMtFee")
    new_r_status: RState = Field(alias="newRStatus")
    state: PoolStateModel

    model_config = {"populate_by_name": True}

    @classmethod
    def from_result(cls, result: FlashLoanResult) -> FlashLoanResponse:
        return cls(
            base_amount=str(result.base_amount),
            quote_amount=str(result.quote_amount),
            base_loan_fee=str(result.base_loan_fee.total_fee),
            quote_loan_fee=str(result.quote_loan_fee.total_fee),
            base_mt_fee=str(result.base_mt_fee),
            quote_mt_fee=str(result.quote_mt_fee),
            new_r_status=result.new_r_status,
            state=PoolStateModel.from_state(result.state),
        )


class ErrorResponse(BaseModel):
    """Body returned for rejected engine operations."""

    error: str
    invariant: str
    detail: str
