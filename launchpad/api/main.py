"""FastAPI application for the bonding-curve launchpad.

Launchpad errors are mapped to 4xx JSON responses; anything else is a 500.
"""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from launchpad import __version__
from launchpad.api.endpoints import router
from launchpad.errors import (
    AlreadyTransitioned,
    CalculationFailed,
    InsufficientLiquidity,
    LaunchpadError,
    MigrationFailed,
    NotYetTransitioned,
    PoolAlreadyExists,
    ReentrancyError,
    RiskRejected,
    Unauthorized,
    UnknownPool,
    ValidationError,
)
from launchpad.logging import configure_logging

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("LAUNCHPAD_HOST", "0.0.0.0")
PORT = int(os.environ.get("LAUNCHPAD_PORT", "8000"))
DEBUG = os.environ.get("LAUNCHPAD_DEBUG", "false").lower() in ("true", "1", "yes")

# Most specific first
ERROR_STATUS: list[tuple[type[LaunchpadError], int]] = [
    (UnknownPool, 404),
    (PoolAlreadyExists, 409),
    (ValidationError, 400),
    (Unauthorized, 403),
    (RiskRejected, 403),
    (InsufficientLiquidity, 409),
    (AlreadyTransitioned, 409),
    (NotYetTransitioned, 409),
    (ReentrancyError, 409),
    (MigrationFailed, 409),
    (CalculationFailed, 422),
]


def status_for(error: LaunchpadError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 400


app = FastAPI(
    title="Bonding-Curve Launchpad",
    description="Launch tokens on bonding curves and migrate them to an AMM",
    version=__version__,
)


@app.exception_handler(LaunchpadError)
async def launchpad_error_handler(request: Request, exc: LaunchpadError) -> JSONResponse:
    status = status_for(exc)
    logger.warning(
        "request_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        message=str(exc),
        status=status,
    )
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "message": str(exc)},
    )


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the launchpad API server.

    Configuration via environment variables:
    - LAUNCHPAD_HOST: Host to bind to (default: 0.0.0.0)
    - LAUNCHPAD_PORT: Port to bind to (default: 8000)
    - LAUNCHPAD_DEBUG: Enable debug logging and reload mode (default: false)
    """
    configure_logging(verbose=DEBUG)
    uvicorn.run(
        "launchpad.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
