from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, Dict, Optional

import httpx
import structlog

from ...schemas.weather import WeatherRecord
from ..retry import RetryPolicy, retry_async

logger = structlog.get_logger()

# Rough mm estimate from a precipitation probability percentage
PRECIP_PROBABILITY_TO_MM = 0.254


class DataNotFound(LookupError):
    """The upstream payload has no entry for the requested date."""


class WeatherFetcher(ABC):
    """Base for provider adapters.

    Subclasses implement ``_fetch`` and may raise freely; ``fetch`` turns every
    failure into ``None`` so a single provider outage only blanks that day.
    """

    source: str = ""
    confidence: str = ""

    def __init__(
        self,
        *,
        api_key: Optional[str],
        base_url: str,
        client: httpx.AsyncClient,
        retry: Optional[RetryPolicy] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.retry = retry or RetryPolicy()
        self.clock = clock

    async def fetch(self, latitude: float, longitude: float, iso_date: str) -> Optional[WeatherRecord]:
        log = logger.bind(source=self.source, iso_date=iso_date, lat=latitude, lon=longitude)
        if not self.api_key:
            log.error("weather_api_key_missing")
            return None
        try:
            target = date.fromisoformat(iso_date)
            return await self._fetch(latitude, longitude, target, iso_date)
        except DataNotFound as e:
            log.warning("weather_date_not_found", detail=str(e))
        except httpx.HTTPStatusError as e:
            log.error("weather_upstream_http_error", status=e.response.status_code)
        except httpx.TransportError as e:
            log.error("weather_upstream_unreachable", error=str(e))
        except Exception as e:
            log.error("weather_upstream_invalid", error=str(e), error_type=type(e).__name__)
        return None

    @abstractmethod
    async def _fetch(
        self, latitude: float, longitude: float, target: date, iso_date: str
    ) -> Optional[WeatherRecord]:
        ...

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        resp = await retry_async(lambda: self.client.get(url, params=params), self.retry)
        resp.raise_for_status()
        return resp.json()

    def _record(self, iso_date: str, hi_c: Any, lo_c: Any, precip_mm: Any, icon: str) -> WeatherRecord:
        return WeatherRecord(
            iso_date=iso_date,
            source=self.source,
            hi_c=round(float(hi_c), 1),
            lo_c=round(float(lo_c), 1),
            precip_mm=round(max(0.0, float(precip_mm)), 2),
            icon=icon,
            confidence=self.confidence,
        )


def entry_date(value: Any) -> date:
    """Calendar date of an ISO timestamp, as written by the provider."""
    return date.fromisoformat(str(value)[:10])
