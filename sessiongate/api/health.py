"""Health check endpoint with database connectivity check.

Health endpoints are not gated; they reveal nothing about sessions.
"""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from sessiongate.core import check_db_connection, settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    sweeper: str = "stopped"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"},
    },
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Returns 503 if the revocation database is unavailable: while it is down
    every gated request is rejected.
    """
    db_healthy = await check_db_connection(request.app.state.session_factory)
    sweeper = request.app.state.runtime.sweeper

    # Set appropriate status code for container orchestration
    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        version=settings.app_version,
        database="connected" if db_healthy else "disconnected",
        sweeper="running" if sweeper.running else "stopped",
    )
