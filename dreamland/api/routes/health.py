"""Health check endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from dreamland import __version__
from dreamland.services.database import get_db_manager
from dreamland.services.redis_client import redis_health_check

router = APIRouter(tags=["health"])


@router.get(
    "/api/health",
    summary="Health check",
    description="Database and Redis connectivity",
)
async def health() -> JSONResponse:
    """Comprehensive health check endpoint.

    Returns 503 when the database is unreachable. An unreachable Redis only
    degrades the status, since the cache and rate limiter fall back without it.

    Returns:
        JSONResponse with overall status and per-dependency checks
    """
    checks = {}

    db_manager = get_db_manager()
    if db_manager is not None:
        db_healthy = await db_manager.health_check()
        checks["database"] = "healthy" if db_healthy else "unhealthy"
    else:
        checks["database"] = "not_configured"

    redis_healthy = await redis_health_check()
    if redis_healthy is None:
        checks["redis"] = "not_configured"
    else:
        checks["redis"] = "healthy" if redis_healthy else "unhealthy"

    if checks["database"] == "unhealthy":
        overall, status_code = "unhealthy", status.HTTP_503_SERVICE_UNAVAILABLE
    elif checks["redis"] == "unhealthy":
        overall, status_code = "degraded", status.HTTP_200_OK
    else:
        overall, status_code = "healthy", status.HTTP_200_OK

    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall,
            "version": __version__,
            "service": "dreamland-api",
            "checks": checks,
        },
    )


@router.get(
    "/api/liveness",
    summary="Liveness probe",
    description="Check if the service is alive",
    status_code=status.HTTP_200_OK,
)
async def liveness() -> dict:
    return {"status": "alive"}
