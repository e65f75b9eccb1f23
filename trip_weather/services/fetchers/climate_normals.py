from __future__ import annotations

from datetime import date
from typing import Optional

from ...schemas.weather import WeatherRecord
from ..icons import climate_normals_icon
from ..source_selector import CLIMATE_NORMALS
from .base import PRECIP_PROBABILITY_TO_MM, DataNotFound, WeatherFetcher, entry_date


class ClimateNormalsFetcher(WeatherFetcher):
    """30-year averages from the Tomorrow.io climate normals API (>548 days).

    Normals are per day of year, so entries are matched on month and day only.
    """

    source = CLIMATE_NORMALS
    confidence = "low"

    async def _fetch(
        self, latitude: float, longitude: float, target: date, iso_date: str
    ) -> Optional[WeatherRecord]:
        data = await self._get_json(
            "/v4/climate/normals",
            {"location": f"{latitude},{longitude}", "apikey": self.api_key},
        )

        entry = None
        for item in data["timelines"]["daily"]:
            d = entry_date(item["time"])
            if (d.month, d.day) == (target.month, target.day):
                entry = item
                break
        if entry is None:
            raise DataNotFound(f"no climate normal for {target.month:02d}-{target.day:02d}")

        values = entry["values"]
        probability = float(values["precipitationProbability"])
        lo_c = float(values["temperatureMin"])
        return self._record(
            iso_date,
            hi_c=values["temperatureMax"],
            lo_c=lo_c,
            precip_mm=probability * PRECIP_PROBABILITY_TO_MM,
            icon=climate_normals_icon(probability, values.get("cloudCover"), lo_c),
        )
