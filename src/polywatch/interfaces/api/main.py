"""FastAPI application setup."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from polywatch import __version__
from polywatch.config.settings import load_settings
from polywatch.interfaces.api import deps
from polywatch.interfaces.api.routes import health, markets, polymarkets
from polywatch.utils.errors import ErrorKind, PolywatchError
from polywatch.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Release upstream and database connections on shutdown."""
    yield
    await deps.shutdown()


app = FastAPI(
    title="PolyWatch API",
    description="Prediction market watchlist API",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings().api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PolywatchError)
async def polywatch_exception_handler(
    request: Request,
    exc: PolywatchError,
) -> JSONResponse:
    """Map PolyWatch errors onto HTTP statuses by error kind."""
    status_code = exc.kind.http_status
    if exc.kind is ErrorKind.UPSTREAM:
        logger.error("Upstream error: {} path={}", exc.message, request.url.path)
    else:
        logger.info("{}: {} path={}", exc.kind.value, exc.message, request.url.path)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": exc.message, "type": exc.kind.value},
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unexpected error: {} path={}", str(exc), request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


# Include routers
app.include_router(health.router)
app.include_router(markets.router)
app.include_router(polymarkets.router)
