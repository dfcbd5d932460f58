"""Unit tests for service.persistence — file and Redis snapshot stores."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from service.models import RecentToolCall, RequestAnalytics
from service.persistence import (
    REDIS_KEY,
    JsonFileAnalyticsStore,
    PersistenceError,
    RedisAnalyticsStore,
)


def _snapshot() -> RequestAnalytics:
    return RequestAnalytics(
        server_start_time="2025-01-01T00:00:00+00:00",
        total_requests=3,
        total_tool_calls=1,
        requests_by_method={"POST": 3},
        tool_calls={"nextcloud_hello": 1},
        recent_tool_calls=[
            RecentToolCall(
                tool="nextcloud_hello",
                timestamp="2025-01-01T00:00:01+00:00",
                client_ip="1.2.3.4",
            )
        ],
    )


def _make_redis_store() -> RedisAnalyticsStore:
    """Create a RedisAnalyticsStore with a mocked Redis client."""
    store = RedisAnalyticsStore("redis://localhost:6379")
    store._client = AsyncMock()
    return store


# ---------------------------------------------------------------------------
# JSON file
# ---------------------------------------------------------------------------


class TestJsonFileStore:
    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, tmp_path):
        store = JsonFileAnalyticsStore(tmp_path / "nope.json")
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_save_creates_parent_dirs_and_uses_camel_case(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "analytics.json"
        store = JsonFileAnalyticsStore(path)

        await store.save(_snapshot())

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw["totalRequests"] == 3
        assert raw["serverStartTime"] == "2025-01-01T00:00:00+00:00"
        assert raw["recentToolCalls"][0]["clientIp"] == "1.2.3.4"

    @pytest.mark.asyncio
    async def test_load_returns_saved_snapshot(self, tmp_path):
        store = JsonFileAnalyticsStore(tmp_path / "a.json")
        await store.save(_snapshot())

        loaded = await store.load()

        assert loaded == _snapshot()

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_persistence_error(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text('{"totalRequests": "many"}', encoding="utf-8")
        with pytest.raises(PersistenceError):
            await JsonFileAnalyticsStore(path).load()

    @pytest.mark.asyncio
    async def test_unwritable_location_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileAnalyticsStore(blocker / "analytics.json")
        with pytest.raises(PersistenceError):
            await store.save(_snapshot())


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


class TestRedisStore:
    @pytest.mark.asyncio
    async def test_connect_success(self):
        store = RedisAnalyticsStore("redis://localhost:6379")
        mock_client = AsyncMock()
        mock_client.ping = AsyncMock(return_value=True)

        with patch("service.persistence.aioredis.from_url", return_value=mock_client):
            await store.connect()

        assert store.available is True
        mock_client.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure_disables_store(self):
        """Redis being down is not fatal."""
        store = RedisAnalyticsStore("redis://localhost:6379")

        with patch(
            "service.persistence.aioredis.from_url",
            side_effect=ConnectionError("refused"),
        ):
            await store.connect()

        assert store.available is False
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_save_writes_json_under_key(self):
        store = _make_redis_store()

        await store.save(_snapshot())

        key, payload = store._client.set.await_args.args
        assert key == REDIS_KEY
        assert json.loads(payload)["totalToolCalls"] == 1

    @pytest.mark.asyncio
    async def test_load_roundtrip(self):
        store = _make_redis_store()
        store._client.get = AsyncMock(
            return_value=_snapshot().model_dump_json(by_alias=True)
        )
        assert await store.load() == _snapshot()

    @pytest.mark.asyncio
    async def test_load_missing_key(self):
        store = _make_redis_store()
        store._client.get = AsyncMock(return_value=None)
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_undecodable_value_raises_persistence_error(self):
        store = _make_redis_store()
        store._client.get = AsyncMock(
            side_effect=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
        )
        with pytest.raises(PersistenceError, match="Corrupt"):
            await store.load()

    @pytest.mark.asyncio
    async def test_garbage_value_raises_persistence_error(self):
        store = _make_redis_store()
        store._client.get = AsyncMock(return_value="{not json")
        with pytest.raises(PersistenceError, match="Corrupt"):
            await store.load()

    @pytest.mark.asyncio
    async def test_redis_error_wrapped(self):
        store = _make_redis_store()
        store._client.set = AsyncMock(side_effect=RedisConnectionError("gone"))
        with pytest.raises(PersistenceError):
            await store.save(_snapshot())

    @pytest.mark.asyncio
    async def test_save_when_not_connected(self):
        store = RedisAnalyticsStore("redis://localhost:6379")
        with pytest.raises(PersistenceError):
            await store.save(_snapshot())

    @pytest.mark.asyncio
    async def test_close(self):
        store = _make_redis_store()
        client = store._client
        await store.close()
        client.aclose.assert_awaited_once()
        assert store.available is False
