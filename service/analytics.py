"""Request and tool call tracking.

``AnalyticsTracker`` owns the process-wide :class:`RequestAnalytics`
aggregate. Recording is synchronous, so increments made from request
handlers on the event loop never interleave. Snapshots go through an
:class:`~service.persistence.AnalyticsStore` on a fixed interval and on
shutdown; persistence failures are logged and never reach the request that
triggered them.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any, Optional

from service.metrics import ANALYTICS_SAVES
from service.models import RecentToolCall, RequestAnalytics
from service.persistence import AnalyticsStore, PersistenceError

logger = logging.getLogger(__name__)

RECENT_TOOL_CALLS_LIMIT = 100
SUMMARY_TOP_CLIENTS = 20
SUMMARY_HOURS = 24
SUMMARY_RECENT_CALLS = 20
DEFAULT_SAVE_INTERVAL = 300  # seconds
USER_AGENT_FALLBACK_CHARS = 30


def _utcnow() -> datetime:
    return datetime.now(UTC)


def user_agent_class(user_agent: str) -> str:
    """Coarse client class: the product token before the first slash."""
    return user_agent.split("/")[0] or user_agent[:USER_AGENT_FALLBACK_CHARS]


def hour_bucket(moment: datetime) -> str:
    """UTC hour key, e.g. ``2025-01-01T13:00``."""
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:00")


def _increment(counter: dict[str, int], key: str) -> None:
    counter[key] = counter.get(key, 0) + 1


def _by_count(counter: dict[str, int]) -> list[tuple[str, int]]:
    return sorted(counter.items(), key=lambda item: item[1], reverse=True)


class AnalyticsTracker:
    """In-memory analytics with periodic snapshots to a store."""

    def __init__(
        self,
        store: Optional[AnalyticsStore] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self._clock = clock
        self._started = clock()
        self.data = RequestAnalytics(server_start_time=self._started.isoformat())
        self._autosave_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_request(
        self, method: str, endpoint: str, client_ip: str, user_agent: str
    ) -> None:
        """Count one inbound HTTP request."""
        data = self.data
        data.total_requests += 1
        _increment(data.requests_by_method, method)
        _increment(data.requests_by_endpoint, endpoint)
        _increment(data.clients_by_ip, client_ip)
        _increment(data.clients_by_user_agent, user_agent_class(user_agent))
        _increment(data.hourly_requests, hour_bucket(self._clock()))

    def record_tool_call(self, tool_name: str, client_ip: str) -> None:
        """Count one tool invocation and push it onto the recent ring."""
        data = self.data
        data.total_tool_calls += 1
        _increment(data.tool_calls, tool_name)
        data.recent_tool_calls.insert(
            0,
            RecentToolCall(
                tool=tool_name,
                timestamp=self._clock().isoformat(),
                client_ip=client_ip,
            ),
        )
        del data.recent_tool_calls[RECENT_TOOL_CALLS_LIMIT:]

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def uptime(self) -> timedelta:
        """Time since this tracker was created in the current process."""
        return self._clock() - self._started

    def format_uptime(self) -> str:
        total = int(self.uptime().total_seconds())
        hours, rest = divmod(total, 3600)
        minutes, seconds = divmod(rest, 60)
        return f"{hours}h {minutes}m {seconds}s"

    def summarize(self) -> dict[str, Any]:
        """Aggregate view served on ``/analytics``."""
        data = self.data
        latest_hours = sorted(data.hourly_requests.items(), reverse=True)[:SUMMARY_HOURS]
        return {
            "uptime": self.format_uptime(),
            "serverStartTime": data.server_start_time,
            "summary": {
                "totalRequests": data.total_requests,
                "totalToolCalls": data.total_tool_calls,
                "uniqueClients": len(data.clients_by_ip),
            },
            "breakdown": {
                "byMethod": dict(data.requests_by_method),
                "byEndpoint": dict(data.requests_by_endpoint),
                "byTool": dict(_by_count(data.tool_calls)),
            },
            "clients": {
                "byIp": dict(_by_count(data.clients_by_ip)[:SUMMARY_TOP_CLIENTS]),
                "byUserAgent": dict(data.clients_by_user_agent),
            },
            "hourlyRequests": dict(reversed(latest_hours)),
            "recentToolCalls": [
                call.model_dump(by_alias=True)
                for call in data.recent_tool_calls[:SUMMARY_RECENT_CALLS]
            ],
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Replace the in-memory state with the stored snapshot, if readable."""
        if self.store is None:
            return
        try:
            snapshot = await self.store.load()
        except PersistenceError as e:
            logger.warning("Could not load analytics, starting fresh: %s", e)
            return
        if snapshot is not None:
            self.data = snapshot
            logger.info(
                "Loaded analytics: %d requests, %d tool calls",
                snapshot.total_requests,
                snapshot.total_tool_calls,
            )

    async def save(self) -> bool:
        """Write a snapshot. Returns False (and logs) on failure."""
        if self.store is None:
            return False
        try:
            await self.store.save(self.data)
        except PersistenceError as e:
            ANALYTICS_SAVES.labels(status="error").inc()
            logger.warning("Could not save analytics: %s", e)
            return False
        ANALYTICS_SAVES.labels(status="success").inc()
        return True

    def start_autosave(self, interval: float = DEFAULT_SAVE_INTERVAL) -> asyncio.Task:
        """Start the periodic snapshot task on the running loop."""
        if self._autosave_task is None or self._autosave_task.done():
            self._autosave_task = asyncio.create_task(self._autosave(interval))
        return self._autosave_task

    async def _autosave(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.save()

    async def shutdown(self) -> None:
        """Stop the periodic task and write a final snapshot."""
        if self._autosave_task:
            self._autosave_task.cancel()
            try:
                await self._autosave_task
            except asyncio.CancelledError:
                pass
            self._autosave_task = None
        logger.info("Saving analytics before shutdown...")
        await self.save()
