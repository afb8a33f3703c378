"""
Companion API — Health Check Route
===================================

What:  Liveness endpoint for container health checks and load balancers.
How:   Reports process uptime and whether the platform settings are present.
       It makes no remote call; a probe must not depend on the platform.

Status levels:
    healthy:   platform URL and keys configured
    degraded:  configuration incomplete; authenticated handlers answer 500
"""

import time

from fastapi import APIRouter, Depends

from companion_api import __version__
from companion_api.config import Settings
from companion_api.dependencies import get_settings
from companion_api.schemas.envelope import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    configured = not settings.missing_platform_settings
    return HealthResponse(
        status="healthy" if configured else "degraded",
        version=__version__,
        platform="configured" if configured else "unconfigured",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
