from __future__ import annotations

import asyncio
from datetime import date
from typing import Callable, Dict, Iterable, Mapping, Optional

import structlog
from pydantic import ValidationError

from ..schemas.weather import DayDescriptor, WeatherRecord
from .cache import Cache
from .fetchers import WeatherFetcher
from .source_selector import ACCUWEATHER, CLIMATE_NORMALS, NONE, OPENWEATHER, OPENWEATHER_18M, choose_source

logger = structlog.get_logger()

HOUR_S = 60 * 60
DEFAULT_TTL_S = HOUR_S
SOURCE_TTL_S: Dict[str, int] = {
    OPENWEATHER: 3 * HOUR_S,
    ACCUWEATHER: 3 * HOUR_S,
    OPENWEATHER_18M: 24 * HOUR_S,
    CLIMATE_NORMALS: 24 * HOUR_S,
}


def cache_key(iso_date: str, latitude: float, longitude: float) -> str:
    return f"weather:{iso_date}:{latitude:.4f}:{longitude:.4f}"


def ttl_for_source(source: str) -> int:
    return SOURCE_TTL_S.get(source, DEFAULT_TTL_S)


class WeatherService:
    """Cache-fronted lookup of daily weather for a location.

    ``cache`` is optional: with no store configured every lookup goes straight
    to the provider chosen for the date's horizon.
    """

    def __init__(
        self,
        fetchers: Mapping[str, WeatherFetcher],
        cache: Optional[Cache] = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.fetchers = dict(fetchers)
        self.cache = cache
        self.clock = clock

    @property
    def cache_name(self) -> str:
        return self.cache.name if self.cache is not None else "disabled"

    async def get_or_fetch(self, latitude: float, longitude: float, iso_date: str) -> Optional[WeatherRecord]:
        try:
            target = date.fromisoformat(iso_date)
        except (TypeError, ValueError):
            logger.warning("weather_invalid_date", iso_date=iso_date)
            return None

        key = cache_key(iso_date, latitude, longitude)
        if self.cache is not None:
            cached = await self._read(key)
            if cached is not None:
                logger.debug("weather_cache_hit", key=key)
                return cached
            logger.debug("weather_cache_miss", key=key)

        record = await self._fetch(latitude, longitude, target, iso_date)
        if record is not None and self.cache is not None:
            await self._write(key, record)
        return record

    async def collect(self, days: Iterable[DayDescriptor]) -> Dict[str, Optional[WeatherRecord]]:
        """Weather for each day keyed by ISO date; lookups run concurrently."""
        results: Dict[str, Optional[WeatherRecord]] = {}
        pending = []
        for day in days:
            results[day.date] = None
            if not day.has_location:
                continue
            pending.append(day)

        outcomes = await asyncio.gather(
            *(self.get_or_fetch(d.latitude, d.longitude, d.date) for d in pending),
            return_exceptions=True,
        )
        for day, outcome in zip(pending, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("weather_lookup_failed", day_id=day.day_id, iso_date=day.date, error=str(outcome))
                continue
            results[day.date] = outcome
        return results

    async def close(self) -> None:
        if self.cache is not None:
            await self.cache.close()

    async def _fetch(
        self, latitude: float, longitude: float, target: date, iso_date: str
    ) -> Optional[WeatherRecord]:
        source = choose_source(target, self.clock())
        if source == NONE:
            return None
        fetcher = self.fetchers.get(source)
        if fetcher is None:
            logger.error("weather_source_unavailable", source=source, iso_date=iso_date)
            return None
        return await fetcher.fetch(latitude, longitude, iso_date)

    async def _read(self, key: str) -> Optional[WeatherRecord]:
        try:
            payload = await self.cache.get_json(key)
        except Exception as e:
            logger.warning("weather_cache_read_failed", key=key, error=str(e))
            return None
        if payload is None:
            return None
        try:
            return WeatherRecord.model_validate(payload)
        except ValidationError as e:
            logger.warning("weather_cache_payload_invalid", key=key, error=str(e))
            return None

    async def _write(self, key: str, record: WeatherRecord) -> None:
        ttl = ttl_for_source(record.source)
        try:
            await self.cache.set_json(key, record.to_wire(), ttl)
        except Exception as e:
            logger.warning("weather_cache_write_failed", key=key, error=str(e))
            return
        logger.debug("weather_cached", key=key, ttl_s=ttl)
