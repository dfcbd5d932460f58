"""Client for the Nextcloud Notes API (v1).

Updates are conditional: every PUT carries ``If-Match`` with the caller's
ETag and the server answers 412 when the note changed in the meantime.
Servers and proxies disagree on whether that header value must be quoted,
so :meth:`NotesClient.update_note` tries a fixed sequence of encodings
and, when all of them are rejected, refreshes the ETag once and tries
again before giving up.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional

import httpx

from nextcloud_client.base import BaseNextcloudClient
from nextcloud_client.errors import (
    NextcloudAPIError,
    NextcloudError,
    PreconditionFailedError,
)
from nextcloud_client.models import Note
from service.metrics import ETAG_RECOVERIES

logger = logging.getLogger(__name__)

NOTES_API = "/apps/notes/api/v1/notes"

# Tried in order: as given, quoted, quotes stripped.
ETAG_ENCODINGS: tuple[Callable[[str], str], ...] = (
    lambda etag: etag,
    lambda etag: f'"{etag}"',
    lambda etag: etag.replace('"', ""),
)


def etag_candidates(etag: str) -> list[str]:
    """Return the If-Match values to try for *etag*, in order."""
    return [encode(etag) for encode in ETAG_ENCODINGS]


def _parse_note(response: httpx.Response) -> Note:
    """Build a Note from a response, falling back to the ETag header."""
    try:
        note = Note.model_validate(response.json())
    except ValueError as exc:
        raise NextcloudAPIError(response.status_code, "Malformed note response") from exc
    if not note.etag and response.headers.get("ETag"):
        note.etag = response.headers["ETag"].strip('"')
    return note


class NotesClient(BaseNextcloudClient):
    """CRUD access to notes, with conditional updates."""

    def _note_url(self, note_id: int) -> str:
        return self.app_url(f"{NOTES_API}/{note_id}")

    async def get_all_notes(self) -> list[Note]:
        """Return every note of the user."""
        data = await self._request_json("GET", self.app_url(NOTES_API))
        return [Note.model_validate(n) for n in data or []]

    async def get_note(self, note_id: int) -> Note:
        """Return one note. Raises NotFoundError if it does not exist."""
        response = await self._request("GET", self._note_url(note_id))
        return _parse_note(response)

    async def create_note(self, title: str, content: str, category: str = "") -> Note:
        """Create a note; the server assigns its id and initial ETag."""
        response = await self._request(
            "POST",
            self.app_url(NOTES_API),
            json={"title": title, "content": content, "category": category},
        )
        note = _parse_note(response)
        logger.info("Created note %s — '%s'", note.id, note.title)
        return note

    async def delete_note(self, note_id: int) -> None:
        """Delete a note. Raises NotFoundError if it is already gone."""
        await self._request("DELETE", self._note_url(note_id))
        logger.info("Deleted note %s", note_id)

    async def update_note(
        self,
        note_id: int,
        etag: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Note:
        """Apply a partial update guarded by *etag*.

        At most two rounds of up to three PUTs each, plus one GET between
        them. If the second round is also rejected, or the GET fails, the
        412 from the first round is raised. Any other error propagates
        immediately.
        """
        changes = {
            key: value
            for key, value in (
                ("title", title),
                ("content", content),
                ("category", category),
            )
            if value is not None
        }

        try:
            return await self._put_if_match(note_id, etag, changes)
        except PreconditionFailedError as original:
            logger.info("Note %s: ETag rejected, refreshing and retrying once", note_id)
            try:
                fresh = await self.get_note(note_id)
            except NextcloudError as refresh_error:
                logger.warning(
                    "Note %s: refresh after 412 failed: %s", note_id, refresh_error
                )
                ETAG_RECOVERIES.labels(outcome="refresh_failed").inc()
                raise original from None

            try:
                note = await self._put_if_match(note_id, fresh.etag, changes)
            except PreconditionFailedError:
                ETAG_RECOVERIES.labels(outcome="conflict").inc()
                raise original from None

            ETAG_RECOVERIES.labels(outcome="recovered").inc()
            return note

    async def _put_if_match(
        self, note_id: int, etag: str, changes: dict[str, Any]
    ) -> Note:
        """One round: PUT with each ETag encoding until one is accepted."""
        last_error: PreconditionFailedError | None = None
        for candidate in etag_candidates(etag):
            try:
                response = await self._request(
                    "PUT",
                    self._note_url(note_id),
                    headers={"If-Match": candidate},
                    json=changes,
                )
            except PreconditionFailedError as e:
                last_error = e
                continue
            return _parse_note(response)

        assert last_error is not None
        raise last_error

    async def append_content(
        self, note_id: int, text: str, separator: str = "\n"
    ) -> Note:
        """Append *text* to a note's content using its current ETag."""
        note = await self.get_note(note_id)
        joined = f"{note.content}{separator}{text}" if note.content else text
        return await self.update_note(note_id, note.etag, content=joined)

    async def search_notes(self, query: str) -> list[Note]:
        """Notes whose title or content contains *query* (case-insensitive)."""
        q = query.lower()
        return [
            n
            for n in await self.get_all_notes()
            if q in n.title.lower() or q in n.content.lower()
        ]
