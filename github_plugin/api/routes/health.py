"""
Health Check Endpoints - Application health and status monitoring.
"""

from fastapi import APIRouter, Depends
from datetime import datetime, timezone

from github_plugin.core.config import get_settings, Settings
from github_plugin.models.responses import HealthResponse


router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check if the API is running and healthy"
)
async def health_check(
    settings: Settings = Depends(get_settings)
) -> HealthResponse:
    """Basic health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/ready",
    summary="Readiness Check",
    description="Check if the plugin's external credentials are configured"
)
async def readiness_check(
    settings: Settings = Depends(get_settings)
) -> dict:
    """
    Readiness check for container orchestration.

    Text generation needs an OpenAI key (or a compatible base URL);
    pull requests need a GitHub token.
    """
    checks = {
        "api": True,
        "llm_configured": bool(settings.openai_api_key or settings.openai_base_url),
        "github_configured": bool(settings.github_api_token),
    }

    return {
        "ready": all(checks.values()),
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
