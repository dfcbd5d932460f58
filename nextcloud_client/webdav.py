"""WebDAV client for files in a user's Nextcloud storage."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote, unquote, urlsplit

from nextcloud_client.base import BaseNextcloudClient
from nextcloud_client.dav import DAV, PROPFIND_FILES, parse_multistatus
from nextcloud_client.models import DavResource

logger = logging.getLogger(__name__)

MAX_READ_CHARS = 100_000


def _normalize(path: str) -> str:
    """Strip surrounding slashes; the storage root is the empty string."""
    return path.strip().strip("/")


class WebDAVClient(BaseNextcloudClient):
    """Browse, read and write files below ``/remote.php/dav/files/<user>``."""

    def _root_path(self) -> str:
        return urlsplit(self.dav_url(f"/files/{quote(self.credentials.username)}/")).path

    def _file_url(self, path: str) -> str:
        return self.dav_url(
            f"/files/{quote(self.credentials.username)}/{quote(_normalize(path))}"
        )

    def _relative_path(self, href: str) -> str:
        """Path of *href* relative to the user's storage root, with leading slash."""
        href_path = unquote(urlsplit(href).path)
        root = unquote(self._root_path())
        if href_path.startswith(root):
            href_path = href_path[len(root) :]
        return "/" + href_path.strip("/")

    async def list_directory(self, path: str = "/") -> list[DavResource]:
        """Direct children of a directory."""
        target = _normalize(path)
        response = await self._request(
            "PROPFIND",
            self._file_url(target) + ("/" if target else ""),
            headers={"Content-Type": "application/xml; charset=utf-8", "Depth": "1"},
            content=PROPFIND_FILES,
        )
        own_path = "/" + target
        resources = []
        for entry in parse_multistatus(response.content):
            rel = self._relative_path(entry.href)
            if rel == own_path:
                continue
            size = entry.text(f"{DAV}getcontentlength")
            resources.append(
                DavResource(
                    path=rel,
                    name=entry.name,
                    is_directory=entry.is_collection,
                    size=int(size) if size and size.isdigit() else None,
                    content_type=entry.text(f"{DAV}getcontenttype"),
                    last_modified=entry.text(f"{DAV}getlastmodified"),
                    etag=entry.text(f"{DAV}getetag"),
                )
            )
        return resources

    async def read_file(self, path: str, max_chars: Optional[int] = MAX_READ_CHARS) -> str:
        """Return a file's content decoded as text, truncated to *max_chars*."""
        response = await self._request("GET", self._file_url(path), headers={"Accept": "*/*"})
        text = response.text
        if max_chars is not None and len(text) > max_chars:
            logger.info("Truncating %s from %d to %d chars", path, len(text), max_chars)
            text = text[:max_chars]
        return text

    async def write_file(
        self, path: str, content: str, content_type: str = "text/plain; charset=utf-8"
    ) -> bool:
        """Create or overwrite a file. Returns True if it was newly created."""
        response = await self._request(
            "PUT",
            self._file_url(path),
            headers={"Content-Type": content_type},
            content=content.encode("utf-8"),
        )
        logger.info("Wrote %d chars to %s", len(content), path)
        return response.status_code == 201

    async def create_directory(self, path: str) -> None:
        await self._request("MKCOL", self._file_url(path))
        logger.info("Created directory %s", path)

    async def delete_resource(self, path: str) -> None:
        """Delete a file or a directory with all its contents."""
        if not _normalize(path):
            raise ValueError("Refusing to delete the storage root")
        await self._request("DELETE", self._file_url(path))
        logger.info("Deleted %s", path)
