from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from ...schemas.weather import WeatherRecord
from ..icons import long_range_icon
from ..source_selector import OPENWEATHER_18M
from .base import WeatherFetcher


def _amount(value: Any, key: str) -> Optional[float]:
    # day_summary nests some values ({"total": 1.2}); older payloads are flat numbers
    if isinstance(value, dict):
        value = value.get(key)
    if value is None:
        return None
    return float(value)


class OpenWeather18mFetcher(WeatherFetcher):
    """Long-range daily summary from OpenWeather (46-548 days)."""

    source = OPENWEATHER_18M
    confidence = "low"

    async def _fetch(
        self, latitude: float, longitude: float, target: date, iso_date: str
    ) -> Optional[WeatherRecord]:
        data: Dict[str, Any] = await self._get_json(
            "/data/3.0/climate/day_summary",
            {
                "lat": latitude,
                "lon": longitude,
                "date": iso_date,
                "units": "metric",
                "appid": self.api_key,
            },
        )
        precip = _amount(data.get("precipitation"), "total") or 0.0
        clouds = _amount(data.get("cloud_cover", data.get("clouds")), "afternoon")
        return self._record(
            iso_date,
            hi_c=data["temperature"]["max"],
            lo_c=data["temperature"]["min"],
            precip_mm=precip,
            icon=long_range_icon(precip, clouds),
        )
