from __future__ import annotations

from datetime import date
from typing import Optional

from ...schemas.weather import WeatherRecord
from ..source_selector import OPENWEATHER, horizon_days
from .base import DataNotFound, WeatherFetcher


class OpenWeatherFetcher(WeatherFetcher):
    """Near-term daily forecast from the OpenWeather One Call 3.0 API (0-10 days)."""

    source = OPENWEATHER
    confidence = "high"

    async def _fetch(
        self, latitude: float, longitude: float, target: date, iso_date: str
    ) -> Optional[WeatherRecord]:
        data = await self._get_json(
            "/data/3.0/onecall",
            {
                "lat": latitude,
                "lon": longitude,
                "exclude": "current,minutely,hourly,alerts",
                "units": "metric",
                "appid": self.api_key,
            },
        )
        daily = data["daily"]
        offset = horizon_days(target, self.clock())
        if offset < 0 or offset >= len(daily):
            raise DataNotFound(f"offset {offset} outside {len(daily)}-day forecast")

        day = daily[offset]
        return self._record(
            iso_date,
            hi_c=day["temp"]["max"],
            lo_c=day["temp"]["min"],
            precip_mm=day.get("rain") or 0,
            icon=day["weather"][0]["icon"],
        )
