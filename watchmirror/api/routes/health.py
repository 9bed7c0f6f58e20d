"""Health check API endpoint."""

from fastapi import APIRouter, Depends

from watchmirror.api.dependencies import get_services
from watchmirror.database.schemas import HealthResponse
from watchmirror.state import AppServices


router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    services: AppServices = Depends(get_services),
) -> HealthResponse:
    """
    Health check endpoint.

    Returns database connection and consumer status, with per-binding
    message counters.
    """
    db_status = "connected" if await services.database.ping() else "disconnected"

    consumer = services.consumer
    consumer_running = consumer is not None and consumer.is_running

    # A disabled consumer leaves the API serving, but nothing stays in sync
    if db_status == "connected" and consumer_running:
        overall = "healthy"
    elif db_status == "connected":
        overall = "degraded"
    else:
        overall = "unhealthy"

    return HealthResponse(
        status=overall,
        database=db_status,
        consumer_running=consumer_running,
        bindings=consumer.stats if consumer is not None else [],
    )
