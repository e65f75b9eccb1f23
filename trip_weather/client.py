from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .schemas.weather import DayDescriptor, WeatherRecord
from .services.icons import icon_url, source_label


class WeatherClientError(RuntimeError):
    """Raised when the weather service rejects a request or is unreachable."""


@dataclass
class TripWeatherClient:
    """Client for the trip weather service used by itinerary views.

    Notes and assumptions:
    - Days without both coordinates are never sent; the service could not
      resolve them anyway.
    - Transient HTTP errors (429/5xx) are retried with exponential backoff by
      the session adapter.
    - The returned map is keyed by ISO date, with ``None`` for days the
      service had no weather for.
    """

    base_url: str = "http://localhost:8000"
    timeout_connect: float = 5.0
    timeout_read: float = 30.0
    max_retries: int = 3
    backoff_factor: float = 0.5

    def _session(self) -> requests.Session:
        s = requests.Session()
        retries = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def fetch_weather(self, days: Iterable[DayDescriptor]) -> Dict[str, Optional[WeatherRecord]]:
        located = [d for d in days if d.has_location]
        if not located:
            return {}

        payload = {"days": [d.model_dump() for d in located]}
        timeout = (self.timeout_connect, self.timeout_read)
        try:
            with self._session() as s:
                resp = s.post(f"{self.base_url.rstrip('/')}/api/weather", json=payload, timeout=timeout)
                resp.raise_for_status()
                data = resp.json()
        except requests.RequestException as e:
            raise WeatherClientError(f"weather request failed: {e}") from e

        if not isinstance(data, dict):
            raise WeatherClientError("weather response is not an object")
        return {
            iso_date: WeatherRecord.model_validate(value) if value is not None else None
            for iso_date, value in data.items()
        }

    @staticmethod
    def weather_for_day(
        days: List[DayDescriptor],
        weather: Mapping[str, Optional[WeatherRecord]],
        day_id: str,
    ) -> Optional[WeatherRecord]:
        day = next((d for d in days if d.day_id == day_id), None)
        if day is None:
            return None
        return weather.get(day.date)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def describe(record: Optional[WeatherRecord]) -> Optional[Dict[str, Any]]:
    """Display fields for a day card: rounded temperatures, label, icon URL."""
    if record is None:
        return None
    return {
        "temperature": f"{_round_half_up(record.hi_c)}° / {_round_half_up(record.lo_c)}°C",
        "precipitation": f"{_round_half_up(record.precip_mm)}mm" if record.precip_mm > 0 else None,
        "label": source_label(record.source),
        "icon_url": icon_url(record.icon),
        "muted": record.confidence == "low",
    }
