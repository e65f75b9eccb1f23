from typing import Dict, Optional

import structlog
from fastapi import APIRouter, Request

from ...schemas.weather import WeatherRecord, WeatherRequest

router = APIRouter()
logger = structlog.get_logger()


@router.post(
    "",
    response_model=Dict[str, Optional[WeatherRecord]],
    summary="Daily weather for trip days",
    responses={
        200: {
            "description": "Weather keyed by ISO date; null where unavailable",
            "content": {
                "application/json": {
                    "example": {
                        "2025-01-01": {
                            "isoDate": "2025-01-01",
                            "source": "openweather",
                            "hiC": 5.0,
                            "loC": 1.0,
                            "precipMM": 0.0,
                            "icon": "01d",
                            "confidence": "high",
                        },
                        "2025-01-02": None,
                    }
                }
            },
        },
        400: {"description": "Malformed request body"},
    },
)
async def trip_weather(request: Request, body: WeatherRequest) -> Dict[str, Optional[WeatherRecord]]:
    service = request.app.state.weather_service
    results = await service.collect(body.days)
    found = sum(1 for r in results.values() if r is not None)
    logger.info("weather_batch_served", days=len(body.days), dates=len(results), found=found)
    return results
