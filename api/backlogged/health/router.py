"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from backlogged.config import get_settings
from backlogged.core.database import AsyncCassandraConnection
from backlogged.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - the process is up."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> ORJSONResponse:
    """Readiness probe - Cassandra is connected and services are wired.

    Redis is reported but never fails the probe; without it comment
    rate limiting is disabled.
    """
    settings = get_settings()
    database = AsyncCassandraConnection.is_connected()
    services = all(
        getattr(request.app.state, name, None) is not None
        for name in ("review_service", "comment_service", "playlist_service")
    )
    ready = database and services
    return ORJSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if ready else "not_ready",
            "environment": settings.environment,
            "database": database,
            "redis": get_redis() is not None,
        },
    )


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
