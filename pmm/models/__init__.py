"""Pydantic models for the pool service."""

from pmm.models.pool import (
    ErrorResponse,
    FlashLoanRequest,
    FlashLoanResponse,
    MaintainerFeesModel,
    PoolConfig,
    PoolParamsModel,
    PoolResponse,
    PoolStateModel,
    ResetRequest,
    TradeRequest,
    TradeResponse,
)
from pmm.models.types import Uint256, validate_uint256

__all__ = [
    # Types
    "Uint256",
    "validate_uint256",
    # Requests
    "PoolConfig",
    "PoolParamsModel",
    "TradeRequest",
    "ResetRequest",
    "FlashLoanRequest",
    # Responses
    "PoolStateModel",
    "PoolResponse",
    "MaintainerFeesModel",
    "TradeResponse",
    "FlashLoanResponse",
    "ErrorResponse",
]
