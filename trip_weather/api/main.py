from typing import Optional

import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError

from ..config import AppSettings
from ..logging import init_logging
from ..services.cache import build_cache
from ..services.fetchers import (
    AccuWeatherFetcher,
    ClimateNormalsFetcher,
    OpenWeather18mFetcher,
    OpenWeatherFetcher,
)
from ..services.retry import RetryPolicy
from ..services.weather_service import WeatherService
from .middleware import (
    RequestIDMiddleware,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .routes import health, weather


def build_weather_service(settings: AppSettings, client: httpx.AsyncClient) -> WeatherService:
    retry = RetryPolicy(attempts=settings.retry_attempts, base_delay_s=settings.retry_base_delay_s)
    fetchers = [
        OpenWeatherFetcher(api_key=settings.openweather_key, base_url=settings.openweather_base_url, client=client, retry=retry),
        AccuWeatherFetcher(api_key=settings.accuweather_key, base_url=settings.accuweather_base_url, client=client, retry=retry),
        OpenWeather18mFetcher(api_key=settings.openweather_key, base_url=settings.openweather_base_url, client=client, retry=retry),
        ClimateNormalsFetcher(api_key=settings.tomorrow_key, base_url=settings.tomorrow_base_url, client=client, retry=retry),
    ]
    return WeatherService({f.source: f for f in fetchers}, cache=build_cache(settings))


def create_app(
    settings: Optional[AppSettings] = None,
    weather_service: Optional[WeatherService] = None,
) -> FastAPI:
    settings = settings or AppSettings()
    log = init_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.weather_service.close()
        if app.state.http_client is not None:
            await app.state.http_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Service health and uptime"},
            {"name": "weather", "description": "Daily weather for trip itineraries"},
        ],
    )

    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(weather.router, prefix="/api/weather", tags=["weather"])

    app.state.settings = settings
    app.state.start_time = time.time()
    # Services are built eagerly (no IO) so tests without lifespan still work
    if weather_service is None:
        app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_s)
        app.state.weather_service = build_weather_service(settings, app.state.http_client)
    else:
        app.state.http_client = None
        app.state.weather_service = weather_service
    log.info("app_configured", cache=app.state.weather_service.cache_name)

    return app


if __name__ == "__main__":
    import uvicorn

    s = AppSettings()
    uvicorn.run(create_app(s), host=s.host, port=s.port)
