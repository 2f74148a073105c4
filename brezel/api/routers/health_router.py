"""
Health Check API Router.
"""
from fastapi import APIRouter

from brezel.schemas.version_schema import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health():
    """Liveness probe polled by the deployment scripts."""
    return HealthResponse(status="ok")
