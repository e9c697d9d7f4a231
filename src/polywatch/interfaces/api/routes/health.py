"""Health check endpoints."""

from fastapi import APIRouter

from polywatch import __version__

router = APIRouter(prefix="/api", tags=["health"])


@router.get("")
async def root() -> dict:
    """Liveness check used by CI."""
    return {"status": "ok"}


@router.get("/health")
async def health() -> dict:
    """Basic health check.

    Returns:
        Health status with version info.
    """
    return {
        "status": "ok",
        "version": __version__,
    }
