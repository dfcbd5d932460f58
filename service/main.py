"""FastAPI application serving the Nextcloud MCP server over HTTP.

Endpoints:
  GET    /                     — Server info and connection help
  GET    /health               — Liveness check
  GET    /analytics            — Request and tool call statistics (JSON)
  GET    /analytics/dashboard  — Charts of /analytics
  GET    /metrics              — Prometheus metrics
  *      /mcp                  — MCP streamable-HTTP endpoint (stateless)

Nextcloud credentials come from the environment or, per request, from the
``nextcloudHost``, ``nextcloudUsername`` and ``nextcloudPassword`` query
parameters of the ``/mcp`` URL.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from mcp_servers.nextcloud.server import mcp
from nextcloud_client.credentials import (
    NextcloudCredentials,
    bind_request_credentials,
    reset_request_credentials,
)
from service.analytics import AnalyticsTracker
from service.config import settings
from service.dashboard import DASHBOARD_HTML
from service.metrics import HTTP_DURATION, HTTP_REQUESTS, TOOL_CALLS
from service.persistence import (
    AnalyticsStore,
    JsonFileAnalyticsStore,
    RedisAnalyticsStore,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

SERVER_NAME = "Nextcloud MCP"
SERVER_VERSION = "1.0.0"
MCP_PATH = "/mcp"

# Not counted by the analytics tracker
_TRACKING_EXCLUDE = {"/metrics"}
# Endpoints excluded from HTTP metrics to avoid cardinality explosion
_METRICS_EXCLUDE = {"/metrics", "/openapi.json", "/docs", "/redoc"}


def _build_store() -> AnalyticsStore:
    if settings.analytics_backend == "redis":
        return RedisAnalyticsStore(settings.redis_url)
    return JsonFileAnalyticsStore(settings.analytics_file)


# --- Global instances ---
store = _build_store()
tracker = AnalyticsTracker(store)
mcp_app = mcp.streamable_http_app()


def client_ip(request: Request) -> str:
    """First ``X-Forwarded-For`` hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def tool_call_names(body: bytes) -> list[str]:
    """Names of the tools invoked by a JSON-RPC message or batch."""
    try:
        payload = json.loads(body)
    except ValueError:
        return []
    messages = payload if isinstance(payload, list) else [payload]
    names = []
    for message in messages:
        if not isinstance(message, dict) or message.get("method") != "tools/call":
            continue
        params = message.get("params")
        if isinstance(params, dict) and params.get("name"):
            names.append(str(params["name"]))
    return names


def _query_credentials(request: Request) -> NextcloudCredentials | None:
    params = request.query_params
    return NextcloudCredentials.from_values(
        params.get("nextcloudHost"),
        params.get("nextcloudUsername"),
        params.get("nextcloudPassword"),
    )


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "jsonrpc": "2.0",
            "error": {"code": -32603, "message": "Internal server error"},
            "id": None,
        },
    )


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Feed every request into the analytics tracker and Prometheus.

    Requests to ``/mcp`` additionally have their tool calls recorded and any
    query-parameter credentials bound for the duration of the request.
    """

    async def dispatch(self, request: Request, call_next):
        """Wrap each request with tracking, timing and counting."""
        path = request.url.path
        ip = client_ip(request)
        if path not in _TRACKING_EXCLUDE:
            tracker.record_request(
                request.method, path, ip, request.headers.get("user-agent", "unknown")
            )

        start = time.perf_counter()
        if path.rstrip("/") == MCP_PATH:
            response = await self._dispatch_mcp(request, call_next, ip)
        else:
            response = await call_next(request)
        elapsed = time.perf_counter() - start

        if path not in _METRICS_EXCLUDE:
            HTTP_REQUESTS.labels(
                method=request.method,
                endpoint=path,
                status_code=response.status_code,
            ).inc()
            HTTP_DURATION.labels(endpoint=path).observe(elapsed)
        return response

    async def _dispatch_mcp(self, request: Request, call_next, ip: str) -> Response:
        if request.method == "POST":
            for name in tool_call_names(await request.body()):
                tracker.record_tool_call(name, ip)
                TOOL_CALLS.labels(tool_name=name).inc()

        credentials = _query_credentials(request)
        token = bind_request_credentials(credentials) if credentials else None
        try:
            return await call_next(request)
        except Exception:
            logger.exception("MCP request failed")
            return _internal_error()
        finally:
            if token is not None:
                reset_request_credentials(token)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: restore analytics, start autosave and the MCP session manager."""
    if isinstance(store, RedisAnalyticsStore):
        await store.connect()
    await tracker.load()
    tracker.start_autosave(settings.analytics_save_interval)
    logger.info(
        "Nextcloud MCP server ready — analytics backend=%s", settings.analytics_backend
    )
    async with mcp.session_manager.run():
        yield
    await tracker.shutdown()
    if isinstance(store, RedisAnalyticsStore):
        await store.close()
    logger.info("Server shut down.")


app = FastAPI(title="Nextcloud MCP Server", version=SERVER_VERSION, lifespan=lifespan)

app.add_middleware(RequestTrackingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Authorization", "Mcp-Session-Id"],
    expose_headers=["Mcp-Session-Id"],
)


# --- Endpoints ---


@app.get("/")
async def root() -> dict[str, Any]:
    """Server information and how to connect."""
    return {
        "name": "Nextcloud MCP Server",
        "version": SERVER_VERSION,
        "description": (
            "MCP server for Nextcloud integration (Notes, Calendar, Contacts, Tables, WebDAV)"
        ),
        "transport": "streamable-http",
        "endpoints": {
            "mcp": MCP_PATH,
            "health": "/health",
            "analytics": "/analytics",
            "analyticsDashboard": "/analytics/dashboard",
            "metrics": "/metrics",
        },
        "authentication": {
            "description": (
                "Provide Nextcloud credentials via query params or environment variables"
            ),
            "queryParams": ["nextcloudHost", "nextcloudUsername", "nextcloudPassword"],
            "example": (
                "/mcp?nextcloudHost=https://cloud.example.com"
                "&nextcloudUsername=user&nextcloudPassword=app-password"
            ),
        },
    }


@app.get("/health")
async def health() -> dict[str, Any]:
    """Liveness check."""
    return {
        "status": "healthy",
        "server": SERVER_NAME,
        "version": SERVER_VERSION,
        "transport": "streamable-http",
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/analytics")
async def analytics() -> dict[str, Any]:
    """Aggregated request and tool call statistics."""
    return {"server": SERVER_NAME, **tracker.summarize()}


@app.get("/analytics/dashboard", response_class=HTMLResponse)
async def analytics_dashboard() -> HTMLResponse:
    """Visual dashboard for /analytics."""
    return HTMLResponse(DASHBOARD_HTML)


@app.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.mount("/", mcp_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
