"""Shared HTTP plumbing for the Nextcloud resource clients.

Each call opens a short-lived ``httpx.AsyncClient`` with basic auth and maps
non-success responses onto the error taxonomy in
:mod:`nextcloud_client.errors`. Nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

from nextcloud_client.credentials import NextcloudCredentials
from nextcloud_client.errors import (
    AuthError,
    NextcloudAPIError,
    NotFoundError,
    PreconditionFailedError,
    TransportError,
)
from service.metrics import NEXTCLOUD_REQUESTS

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "OCS-APIRequest": "true",
    "Accept": "application/json",
    "User-Agent": "nextcloud-mcp/1.0",
}
MAX_ERROR_BODY = 200


class BaseNextcloudClient:
    """Authenticated access to one Nextcloud instance."""

    def __init__(
        self,
        credentials: NextcloudCredentials,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.credentials = credentials
        self._transport = transport

    def app_url(self, path: str) -> str:
        """URL of an app API endpoint, e.g. ``/apps/notes/api/v1/notes``."""
        return f"{self.credentials.host}/index.php{path}"

    def dav_url(self, path: str) -> str:
        """URL below the DAV root, e.g. ``/files/alice/Documents``."""
        return f"{self.credentials.host}/remote.php/dav{path}"

    def href_url(self, href: str) -> str:
        """Absolute URL for a server-relative href taken from a DAV response."""
        parts = urlsplit(self.credentials.host)
        return f"{parts.scheme}://{parts.netloc}{href}"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        json: Any = None,
        content: str | bytes | None = None,
        params: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send one request and raise a ``NextcloudError`` on failure."""
        try:
            async with httpx.AsyncClient(
                auth=(self.credentials.username, self.credentials.password),
                headers=DEFAULT_HEADERS,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    json=json,
                    content=content,
                    params=params,
                )
        except httpx.TransportError as e:
            NEXTCLOUD_REQUESTS.labels(method=method, status="error").inc()
            logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError(
                f"Could not reach {self.credentials.host}: {e}"
            ) from e

        NEXTCLOUD_REQUESTS.labels(method=method, status=str(response.status_code)).inc()
        _raise_for_status(response)
        return response

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Like :meth:`_request` but decode a JSON body (``None`` if empty)."""
        response = await self._request(method, url, **kwargs)
        if not response.content:
            return None
        return response.json()


def _raise_for_status(response: httpx.Response) -> None:
    """Translate an error status into the matching exception."""
    if response.is_success:
        return

    status = response.status_code
    message = response.reason_phrase or "Error"
    body = response.text.strip()
    if body:
        message = f"{message}: {body[:MAX_ERROR_BODY]}"

    if status in (401, 403):
        raise AuthError(status, message)
    if status == 404:
        raise NotFoundError(status, message)
    if status == 412:
        raise PreconditionFailedError(status, message)
    raise NextcloudAPIError(status, message)
