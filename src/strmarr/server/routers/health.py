"""Health check router for the strmarr HTTP server."""

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from ..dependencies import EngineDep

router = APIRouter(prefix="/api")


class HealthResponse(BaseModel):
    """Response model for health check endpoint.

    Attributes:
        status: Health status of the service.
        timestamp: Current server timestamp.
        service: Name of the service.
        version: Version of the service.
        movies_enabled: Whether Radarr is configured.
    """

    status: Literal["healthy", "degraded", "unhealthy"]
    timestamp: datetime
    service: str
    version: str
    movies_enabled: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: EngineDep) -> HealthResponse:
    """Report that the service is up and which catalogs it handles."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        service="strmarr",
        version="0.1.0",
        movies_enabled=engine.handles_movies,
    )
