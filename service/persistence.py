"""Snapshot backends for the request analytics.

``JsonFileAnalyticsStore`` keeps one JSON document on disk and is the
default. ``RedisAnalyticsStore`` keeps the same document under a single
Redis key; Redis being unavailable is handled gracefully, the server keeps
counting in memory. Both raise :class:`PersistenceError` on failure and
never anything else.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from service.models import RequestAnalytics

logger = logging.getLogger(__name__)

REDIS_KEY = "nextcloud_mcp:analytics"


class PersistenceError(Exception):
    """An analytics snapshot could not be read or written."""


class AnalyticsStore(Protocol):
    """Where analytics snapshots live."""

    async def load(self) -> Optional[RequestAnalytics]:
        """Return the stored snapshot, or None if there is none."""
        ...

    async def save(self, data: RequestAnalytics) -> None:
        """Replace the stored snapshot with *data*."""
        ...


class JsonFileAnalyticsStore:
    """Snapshot in a single JSON file, overwritten wholesale on save."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> Optional[RequestAnalytics]:
        if not self._path.exists():
            logger.info("No analytics file at %s — starting fresh", self._path)
            return None
        try:
            raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
            return RequestAnalytics.model_validate_json(raw)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read {self._path}: {exc}") from exc

    async def save(self, data: RequestAnalytics) -> None:
        payload = data.model_dump_json(by_alias=True, indent=2)
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as exc:
            raise PersistenceError(f"Could not write {self._path}: {exc}") from exc

    def _write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(payload, encoding="utf-8")


class RedisAnalyticsStore:
    """Snapshot stored as a JSON string under one Redis key."""

    def __init__(self, redis_url: str, key: str = REDIS_KEY) -> None:
        self._redis_url = redis_url
        self._key = key
        self._client: Optional[aioredis.Redis] = None

    @property
    def available(self) -> bool:
        """Whether the Redis connection is active."""
        return self._client is not None

    async def connect(self) -> None:
        """Connect to Redis. Non-fatal if Redis is unavailable."""
        try:
            self._client = aioredis.from_url(self._redis_url, decode_responses=True)
            await self._client.ping()
            logger.info("Redis analytics store connected: %s", self._redis_url)
        except Exception as e:
            logger.warning("Redis unavailable, analytics will not persist: %s", e)
            self._client = None

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def load(self) -> Optional[RequestAnalytics]:
        if not self._client:
            return None
        try:
            raw = await self._client.get(self._key)
        except UnicodeDecodeError as exc:
            raise PersistenceError(f"Corrupt analytics snapshot in Redis: {exc}") from exc
        except RedisError as exc:
            raise PersistenceError(f"Redis get failed: {exc}") from exc
        if raw is None:
            return None
        try:
            return RequestAnalytics.model_validate_json(raw)
        except ValueError as exc:
            raise PersistenceError(f"Corrupt analytics snapshot in Redis: {exc}") from exc

    async def save(self, data: RequestAnalytics) -> None:
        if not self._client:
            raise PersistenceError("Redis is not connected")
        try:
            await self._client.set(self._key, data.model_dump_json(by_alias=True))
        except RedisError as exc:
            raise PersistenceError(f"Redis set failed: {exc}") from exc
