"""Health check endpoint for monitoring."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from dormmate.config import APP_VERSION
from dormmate.container import get_health_checker
from dormmate.services.health_service import HealthChecker, HealthStatus

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: HealthStatus
    timestamp: datetime
    store_connected: bool
    consecutive_failures: int
    uptime_seconds: float
    version: str


@router.get("", response_model=HealthResponse)
async def health_check(
    health_checker: HealthChecker = Depends(get_health_checker),
) -> HealthResponse:
    """Health check endpoint.

    Returns:
        HealthResponse with current status
    """
    return HealthResponse(
        status=health_checker.get_status(),
        timestamp=datetime.now(),
        store_connected=health_checker.store_connected,
        consecutive_failures=health_checker.consecutive_failures,
        uptime_seconds=health_checker.get_uptime(),
        version=APP_VERSION,
    )


@router.get("/ready")
async def readiness_check(
    health_checker: HealthChecker = Depends(get_health_checker),
) -> dict[str, bool | HealthStatus]:
    """Readiness check endpoint.

    Returns:
        Dictionary indicating readiness status

    Raises:
        HTTPException: If the store has failed past the unhealthy threshold
    """
    health_status = health_checker.get_status()

    if health_status == HealthStatus.UNHEALTHY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=(
                f"Service unhealthy: {health_checker.consecutive_failures} "
                "consecutive store failures"
            ),
        )

    return {"ready": True, "status": health_status}


@router.get("/live")
async def liveness_check(
    health_checker: HealthChecker = Depends(get_health_checker),
) -> dict[str, bool | float]:
    """Liveness check endpoint."""
    return {"alive": True, "uptime_seconds": health_checker.get_uptime()}
