"""Prometheus metrics for the Nextcloud MCP server.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# HTTP request metrics
# ---------------------------------------------------------------------------

HTTP_REQUESTS = Counter(
    "nextcloud_mcp_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_DURATION = Histogram(
    "nextcloud_mcp_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0, 30.0, 60.0),
)

# ---------------------------------------------------------------------------
# Tool invocation metrics
# ---------------------------------------------------------------------------

TOOL_CALLS = Counter(
    "nextcloud_mcp_tool_calls_total",
    "Total MCP tool invocations received",
    ["tool_name"],
)

# ---------------------------------------------------------------------------
# Outbound Nextcloud metrics
# ---------------------------------------------------------------------------

NEXTCLOUD_REQUESTS = Counter(
    "nextcloud_mcp_upstream_requests_total",
    "Requests sent to the Nextcloud instance",
    ["method", "status"],  # status is the HTTP code or "error"
)

ETAG_RECOVERIES = Counter(
    "nextcloud_mcp_etag_recoveries_total",
    "Note updates that refreshed a rejected ETag and retried",
    ["outcome"],  # recovered, conflict, refresh_failed
)

# ---------------------------------------------------------------------------
# Analytics persistence
# ---------------------------------------------------------------------------

ANALYTICS_SAVES = Counter(
    "nextcloud_mcp_analytics_saves_total",
    "Analytics snapshot writes",
    ["status"],  # success, error
)
