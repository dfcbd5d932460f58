"""Pydantic models for the request analytics snapshot.

Fields serialize with camelCase aliases; the same shape is written to the
snapshot file and served on ``/analytics``.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecentToolCall(_CamelModel):
    """One entry of the recent tool call ring."""

    tool: str
    timestamp: str
    client_ip: str


class RequestAnalytics(_CamelModel):
    """Process-wide request and tool call counters."""

    server_start_time: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="ISO-8601 time the snapshot was first created",
    )
    total_requests: int = 0
    total_tool_calls: int = 0
    requests_by_method: dict[str, int] = Field(default_factory=dict)
    requests_by_endpoint: dict[str, int] = Field(default_factory=dict)
    tool_calls: dict[str, int] = Field(default_factory=dict)
    recent_tool_calls: list[RecentToolCall] = Field(
        default_factory=list, description="Most recent first"
    )
    clients_by_ip: dict[str, int] = Field(default_factory=dict)
    clients_by_user_agent: dict[str, int] = Field(default_factory=dict)
    hourly_requests: dict[str, int] = Field(
        default_factory=dict, description="Keyed by UTC hour, e.g. 2025-01-01T13:00"
    )
