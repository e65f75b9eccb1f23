from __future__ import annotations

from datetime import date
from typing import Optional

from ...schemas.weather import WeatherRecord
from ..icons import accuweather_icon
from ..source_selector import ACCUWEATHER
from .base import PRECIP_PROBABILITY_TO_MM, DataNotFound, WeatherFetcher, entry_date


class AccuWeatherFetcher(WeatherFetcher):
    """Extended 45-day forecast from AccuWeather (11-45 days).

    Needs two calls: coordinates are first resolved to an AccuWeather location
    key, then the daily forecast is requested for that key.
    """

    source = ACCUWEATHER
    confidence = "medium"

    async def location_key(self, latitude: float, longitude: float) -> str:
        data = await self._get_json(
            "/locations/v1/cities/geoposition/search",
            {"apikey": self.api_key, "q": f"{latitude},{longitude}"},
        )
        key = data.get("Key")
        if not key:
            raise ValueError("geoposition search returned no location key")
        return str(key)

    async def _fetch(
        self, latitude: float, longitude: float, target: date, iso_date: str
    ) -> Optional[WeatherRecord]:
        key = await self.location_key(latitude, longitude)
        data = await self._get_json(
            f"/forecasts/v1/daily/45day/{key}",
            {"apikey": self.api_key, "metric": "true"},
        )

        day = next((d for d in data["DailyForecasts"] if entry_date(d["Date"]) == target), None)
        if day is None:
            raise DataNotFound(f"{iso_date} not in AccuWeather forecast")

        rain_probability = float(day["Day"]["RainProbability"])
        return self._record(
            iso_date,
            hi_c=day["Temperature"]["Maximum"]["Value"],
            lo_c=day["Temperature"]["Minimum"]["Value"],
            precip_mm=rain_probability * PRECIP_PROBABILITY_TO_MM,
            icon=accuweather_icon(day["Day"].get("Icon")),
        )
