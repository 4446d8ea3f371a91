import platform
import time

from fastapi import APIRouter, Depends, status

from app.api.deps import get_app_settings
from app.core.config import Settings
from app.models.contact import HealthResponse, InfoResponse
from app.utils.helper_functions import now_utc_iso

router = APIRouter()

PROCESS_STARTED_AT = time.monotonic()

AVAILABLE_ENDPOINTS = ["/api/health", "/api/contact", "/api/info"]


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health(settings: Settings = Depends(get_app_settings)) -> HealthResponse:
    return HealthResponse(
        success=True,
        message="Contact form API is running smoothly",
        timestamp=now_utc_iso(),
        uptime=round(time.monotonic() - PROCESS_STARTED_AT, 3),
        environment=settings.ENVIRONMENT,
        pythonVersion=platform.python_version(),
    )


@router.get(
    "/info",
    response_model=InfoResponse,
    status_code=status.HTTP_200_OK,
    summary="API capabilities",
)
async def info(settings: Settings = Depends(get_app_settings)) -> InfoResponse:
    window_minutes = settings.RATE_LIMIT_WINDOW_SECONDS // 60
    return InfoResponse(
        success=True,
        name=settings.PROJECT_NAME,
        version=settings.VERSION,
        endpoints={
            "health": "/api/health",
            "contact": "/api/contact (POST)",
            "info": "/api/info",
        },
        rateLimit={
            "windowMs": f"{window_minutes} minutes",
            "max": settings.RATE_LIMIT_MAX_REQUESTS,
        },
    )
