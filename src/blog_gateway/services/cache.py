"""Read-through cache for rendered content listings."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import redis.asyncio as aioredis

from blog_gateway.core.settings import settings

logger = logging.getLogger(__name__)


def page_key(page: int) -> str:
    """Cache key for one page of the published post listing."""
    return f"posts:page:{page}"


def post_key(slug: str) -> str:
    """Cache key for a single published post with its comments."""
    return f"post:{slug}"


class CacheStore(Protocol):
    """Minimal key-value interface with per-entry expiry."""

    async def get(self, key: str) -> str | bytes | None:
        """Return the stored value or None."""

    async def set(self, key: str, value: str, ex: int) -> Any:
        """Store ``value`` for ``ex`` seconds."""

    async def delete(self, key: str) -> Any:
        """Remove ``key`` if present."""


class RedisCacheStore:
    """Cache store backed by Redis."""

    def __init__(self, url: str | None = None) -> None:
        self._redis = aioredis.from_url(url or settings.redis_url)

    async def get(self, key: str) -> str | bytes | None:
        return await self._redis.get(key)

    async def set(self, key: str, value: str, ex: int) -> Any:
        return await self._redis.set(key, value, ex=ex)

    async def delete(self, key: str) -> Any:
        return await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()


class ContentCache:
    """JSON read-through cache with TTL and explicit invalidation.

    The database stays the source of truth: cache outages are logged and
    treated as misses, and failed writes or deletes only cost freshness
    until the TTL runs out.
    """

    def __init__(self, store: CacheStore | None, ttl_seconds: int | None = None) -> None:
        self.store = store
        self.ttl_seconds = settings.cache_ttl if ttl_seconds is None else ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.store is not None and self.ttl_seconds > 0

    async def get_json(self, key: str) -> Any | None:
        if not self.enabled:
            return None
        try:
            raw = await self.store.get(key)  # type: ignore[union-attr]
            if raw is None:
                return None
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            return json.loads(raw)
        except Exception:
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return None

    async def put_json(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        try:
            await self.store.set(key, json.dumps(value), ex=self.ttl_seconds)  # type: ignore[union-attr]
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)

    async def invalidate(self, *keys: str) -> None:
        if self.store is None:
            return
        for key in keys:
            try:
                await self.store.delete(key)
            except Exception:
                logger.warning("Cache invalidation failed for %s", key, exc_info=True)
