from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, Optional, Protocol

import structlog

from ..config import AppSettings

log = structlog.get_logger()


class Cache(Protocol):
    name: str

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]: ...
    async def set_json(self, key: str, value: Dict[str, Any], ttl_s: int) -> None: ...
    async def close(self) -> None: ...


class InMemoryCache:
    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # key -> (expires_at, json_string)
        self._store: Dict[str, tuple[float, str]] = {}

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        item = self._store.get(key)
        if not item:
            return None
        expires_at, payload = item
        if self._clock() >= expires_at:
            # expired
            self._store.pop(key, None)
            return None
        try:
            return json.loads(payload)
        except ValueError as e:
            log.warning("cache_deserialize_error", key=key, error=str(e))
            self._store.pop(key, None)
            return None

    async def set_json(self, key: str, value: Dict[str, Any], ttl_s: int) -> None:
        payload = json.dumps(value, separators=(",", ":"))
        self._store[key] = (self._clock() + max(0, int(ttl_s)), payload)

    async def close(self) -> None:
        self._store.clear()


class RedisCache:
    name = "redis"

    def __init__(self, url: str, client: Any = None) -> None:
        if client is None:
            import redis.asyncio as redis

            client = redis.from_url(url, decode_responses=True)
        self._redis = client

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        raw = await self._redis.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            log.warning("cache_deserialize_error", key=key, error=str(e))
            await self._redis.delete(key)
            return None

    async def set_json(self, key: str, value: Dict[str, Any], ttl_s: int) -> None:
        raw = json.dumps(value, separators=(",", ":"))
        ttl = max(0, int(ttl_s))
        if ttl > 0:
            await self._redis.setex(key, ttl, raw)
        else:
            await self._redis.set(key, raw)

    async def close(self) -> None:
        await self._redis.aclose()


def build_cache(settings: AppSettings) -> Optional[Cache]:
    """Factory for the configured cache store.

    ``cache_backend`` is one of ``auto`` (redis when ``redis_url`` is set,
    in-memory otherwise), ``redis``, ``memory`` or ``none``. Returns ``None``
    when caching is disabled or the store cannot be created; callers then
    fetch directly.
    """
    backend = settings.cache_backend.lower()
    if backend == "none":
        log.info("cache_init_disabled")
        return None
    if backend == "memory" or (backend == "auto" and not settings.redis_url):
        log.info("cache_init_inmemory")
        return InMemoryCache()
    if not settings.redis_url:
        log.warning("cache_init_redis_missing_url")
        return None
    try:
        cache = RedisCache(settings.redis_url)
    except Exception as e:
        log.warning("cache_init_redis_failed", error=str(e))
        return None
    log.info("cache_init_redis")
    return cache
