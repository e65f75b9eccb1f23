import time
from fastapi import APIRouter, Request

import structlog
from ...schemas.health import HealthResponse

router = APIRouter()
logger = structlog.get_logger()


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health status",
)
def health(request: Request) -> HealthResponse:
    settings = request.app.state.settings
    uptime = max(0.0, time.time() - float(getattr(request.app.state, "start_time", time.time())))
    cache = request.app.state.weather_service.cache_name
    logger.debug("health_check", env=settings.app_env, cache=cache)
    return HealthResponse(status="ok", uptime_s=uptime, version=settings.app_version, cache=cache)
