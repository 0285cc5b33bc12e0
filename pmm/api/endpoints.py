"""API endpoints for the pool service."""

import os
import threading
from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, HTTPException

from pmm.engine import PMMPool
from pmm.models.pool import (
    FlashLoanRequest,
    FlashLoanResponse,
    PoolConfig,
    PoolResponse,
    ResetRequest,
    TradeRequest,
    TradeResponse,
)
from pmm.trading import query_sell_base as price_sell_base
from pmm.trading import query_sell_quote as price_sell_quote

logger = structlog.get_logger()

router = APIRouter()

# Path to a JSON PoolConfig describing the pool served by this process
POOL_CONFIG_PATH = os.environ.get("PMM_POOL_CONFIG")

# Serializes every operation that replaces the pool state
_pool_lock = threading.Lock()


@lru_cache(maxsize=1)
def _load_configured_pool(path: str) -> PMMPool:
    logger.info("loading_pool_config", path=path)
    return PoolConfig.from_file(path).build_pool()


def get_pool() -> PMMPool:
    """Dependency provider for the pool instance.

    Override this in tests to inject a pool:
        app.dependency_overrides[get_pool] = lambda: pool

    Returns:
        The pool served by this process.
    """
    if not POOL_CONFIG_PATH:
        raise HTTPException(status_code=503, detail="No pool configured (set PMM_POOL_CONFIG)")
    return _load_configured_pool(POOL_CONFIG_PATH)


@router.get("/pool")
def get_pool_state(pool: PMMPool = Depends(get_pool)) -> PoolResponse:
    """Current reserves, targets, R-status, mid price and maintainer fees."""
    with _pool_lock:
        return PoolResponse.from_pool(pool)


@router.post("/query/sell-base")
def query_sell_base(request: TradeRequest, pool: PMMPool = Depends(get_pool)) -> TradeResponse:
    """Preview selling base. The pool is not modified."""
    with _pool_lock:
        state = pool.state
    return TradeResponse.from_result(price_sell_base(state, int(request.amount)))


@router.post("/query/sell-quote")
def query_sell_quote(request: TradeRequest, pool: PMMPool = Depends(get_pool)) -> TradeResponse:
    """Preview selling quote. The pool is not modified."""
    with _pool_lock:
        state = pool.state
    return TradeResponse.from_result(price_sell_quote(state, int(request.amount)))


@router.post("/sell-base")
def sell_base(request: TradeRequest, pool: PMMPool = Depends(get_pool)) -> TradeResponse:
    """Sell base that the trader has already deposited."""
    with _pool_lock:
        result = pool.sell_base(int(request.amount), min_receive=int(request.min_receive))
    logger.info(
        "sell_base_served",
        amount=request.amount,
        receive_amount=str(result.counter_amount),
    )
    return TradeResponse.from_result(result)


@router.post("/sell-quote")
def sell_quote(request: TradeRequest, pool: PMMPool = Depends(get_pool)) -> TradeResponse:
    """Sell quote that the trader has already deposited."""
    with _pool_lock:
        result = pool.sell_quote(int(request.amount), min_receive=int(request.min_receive))
    logger.info(
        "sell_quote_served",
        amount=request.amount,
        receive_amount=str(result.counter_amount),
    )
    return TradeResponse.from_result(result)


@router.post("/flash-loan")
def flash_loan(request: FlashLoanRequest, pool: PMMPool = Depends(get_pool)) -> FlashLoanResponse:
    """Settle a flash loan whose post-operation balances are reported in the request."""
    balances = (int(request.base_balance), int(request.quote_balance))
    with _pool_lock:
        result = pool.flash_loan(
            int(request.base_amount),
            int(request.quote_amount),
            lambda base_amount, quote_amount: balances,
        )
    return FlashLoanResponse.from_result(result)


@router.post("/reset")
def reset(request: ResetRequest, pool: PMMPool = Depends(get_pool)) -> PoolResponse:
    """Apply new parameters and rebalance the pool around its reserves."""
    params = request.params.to_params()
    with _pool_lock:
        pool.reset(
            params,
            base_in=int(request.base_in),
            quote_in=int(request.quote_in),
            base_out=int(request.base_out),
            quote_out=int(request.quote_out),
            min_base_reserve=int(request.min_base_reserve),
            min_quote_reserve=int(request.min_quote_reserve),
            base_target=None if request.base_target is None else int(request.base_target),
            quote_target=None if request.quote_target is None else int(request.quote_target),
        )
        return PoolResponse.from_pool(pool)
