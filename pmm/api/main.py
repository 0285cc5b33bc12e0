"""FastAPI application for the PMM pool service."""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pmm import __version__
from pmm.api.endpoints import router
from pmm.errors import (
    ArithmeticOverflow,
    DivisionByZero,
    InvalidParameter,
    InvariantViolation,
    PMMError,
)
from pmm.log import configure_logging
from pmm.models import ErrorResponse

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("PMM_HOST", "0.0.0.0")
PORT = int(os.environ.get("PMM_PORT", "8000"))
DEBUG = os.environ.get("PMM_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

app = FastAPI(
    title="PMM Engine",
    description="Proportional market-maker pricing engine for a two-asset pool",
    version=__version__,
)


def status_for(error: PMMError) -> int:
    """HTTP status for an engine error.

    Input problems are 400, a pool that cannot honour a well-formed request
    is 409, and a broken post-trade state is 500.
    """
    if isinstance(error, InvariantViolation):
        return 500
    if isinstance(error, (InvalidParameter, ArithmeticOverflow, DivisionByZero)):
        return 400
    return 409


@app.exception_handler(PMMError)
async def handle_pmm_error(request: Request, exc: PMMError) -> JSONResponse:
    """Translate engine errors into JSON responses."""
    status_code = status_for(exc)
    logger.warning(
        "request_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        invariant=exc.invariant,
        status_code=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=type(exc).__name__, invariant=exc.invariant, detail=exc.detail
        ).model_dump(),
    )


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the pool API server.

    Configuration via environment variables:
    - PMM_HOST: Host to bind to (default: 0.0.0.0)
    - PMM_PORT: Port to bind to (default: 8000)
    - PMM_DEBUG: Enable debug/reload mode (default: false)
    - PMM_POOL_CONFIG: JSON file with the initial pool (required to trade)
    """
    configure_logging(verbose=DEBUG)
    uvicorn.run(
        "pmm.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
