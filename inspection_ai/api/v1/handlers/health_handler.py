"""
Health check handlers
"""
from fastapi import APIRouter, Depends

from inspection_ai.config import Settings, get_settings
from inspection_ai.models.responses import HealthResponse

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse, include_in_schema=False)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Basic health check
    The service is up; ai_configured tells whether analysis can succeed
    """
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        ai_configured=settings.ai_configured
    )


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Readiness check for Kubernetes
    Ready once AI is enabled and an API key is set
    """
    is_ready = settings.ai_configured

    return HealthResponse(
        status="ready" if is_ready else "not_ready",
        version=settings.APP_VERSION,
        ai_configured=is_ready
    )
