"""
Health check API endpoints.

Routes: GET /health

Dependencies: fastapi
System role: Health check HTTP API
"""

from fastapi import APIRouter
from pydantic import BaseModel

from imagecraft.api.deps import get_service_cache


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    message: str
    active_generations: int = 0


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check."""
    return HealthResponse(
        status="healthy",
        message="Server Healthy",
        active_generations=get_service_cache().active_generation_count(),
    )
