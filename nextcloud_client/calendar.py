"""CalDAV client for Nextcloud calendars."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Optional
from urllib.parse import quote, urlsplit

from nextcloud_client.base import BaseNextcloudClient
from nextcloud_client.dav import (
    APPLE_ICAL,
    CALDAV,
    DAV,
    PROPFIND_COLLECTIONS,
    calendar_query,
    parse_multistatus,
)
from nextcloud_client.errors import NotFoundError
from nextcloud_client.models import Calendar, CalendarEvent
from nextcloud_client.vformat import build_event, parse_event, utc_stamp

logger = logging.getLogger(__name__)

XML_HEADERS = {"Content-Type": "application/xml; charset=utf-8", "Accept": "*/*"}
ICS_HEADERS = {"Content-Type": "text/calendar; charset=utf-8", "Accept": "text/calendar"}


def _utc_range_value(value: str) -> str:
    """ISO-8601 date or date-time to a UTC time-range bound."""
    if len(value) == 10:
        moment = datetime.fromisoformat(value).replace(tzinfo=UTC)
    else:
        moment = datetime.fromisoformat(value)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
    return utc_stamp(moment)


class CalendarClient(BaseNextcloudClient):
    """Calendars and events of the authenticated user."""

    def _home_url(self) -> str:
        return self.dav_url(f"/calendars/{quote(self.credentials.username)}/")

    def _calendar_url(self, calendar: str) -> str:
        return f"{self._home_url()}{quote(calendar)}/"

    async def list_calendars(self) -> list[Calendar]:
        """Calendar collections in the user's calendar home."""
        response = await self._request(
            "PROPFIND",
            self._home_url(),
            headers={**XML_HEADERS, "Depth": "1"},
            content=PROPFIND_COLLECTIONS,
        )
        return [
            Calendar(
                name=entry.name,
                display_name=entry.text(f"{DAV}displayname") or entry.name,
                color=entry.text(f"{APPLE_ICAL}calendar-color"),
                href=entry.href,
            )
            for entry in parse_multistatus(response.content)
            if f"{CALDAV}calendar" in entry.resource_types()
        ]

    async def list_events(
        self,
        calendar: str,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> list[CalendarEvent]:
        """Events in *calendar*, optionally limited to [start, end)."""
        body = calendar_query(
            _utc_range_value(start) if start else None,
            _utc_range_value(end) if end else None,
        )
        response = await self._request(
            "REPORT",
            self._calendar_url(calendar),
            headers={**XML_HEADERS, "Depth": "1"},
            content=body,
        )
        events = []
        for entry in parse_multistatus(response.content):
            data = entry.text(f"{CALDAV}calendar-data")
            if not data:
                continue
            fields = parse_event(data)
            if not fields["uid"] or not fields["start"]:
                logger.debug("Skipping calendar object without UID/DTSTART: %s", entry.href)
                continue
            events.append(
                CalendarEvent(**fields, href=entry.href, etag=entry.text(f"{DAV}getetag"))
            )
        return events

    async def get_event(self, calendar: str, uid: str) -> CalendarEvent:
        """Fetch one event by UID.

        Objects created by this client are stored as ``<uid>.ics``; objects
        from other clients may use any file name, so a miss falls back to a
        calendar-query scan.
        """
        url = f"{self._calendar_url(calendar)}{quote(uid)}.ics"
        try:
            response = await self._request("GET", url, headers={"Accept": "text/calendar"})
        except NotFoundError:
            for event in await self.list_events(calendar):
                if event.uid == uid:
                    return event
            raise
        fields = parse_event(response.text)
        return CalendarEvent(
            **{**fields, "uid": fields["uid"] or uid},
            href=urlsplit(url).path,
            etag=response.headers.get("ETag"),
        )

    async def create_event(
        self,
        calendar: str,
        summary: str,
        start: str,
        end: Optional[str] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> CalendarEvent:
        """Create an event; times are ISO-8601 dates or date-times."""
        uid = str(uuid.uuid4())
        url = f"{self._calendar_url(calendar)}{uid}.ics"
        response = await self._request(
            "PUT",
            url,
            headers={**ICS_HEADERS, "If-None-Match": "*"},
            content=build_event(uid, summary, start, end, description, location),
        )
        logger.info("Created event %s in calendar '%s'", uid, calendar)
        return CalendarEvent(
            uid=uid,
            summary=summary,
            start=start,
            end=end,
            description=description,
            location=location,
            href=urlsplit(url).path,
            etag=response.headers.get("ETag"),
        )

    async def update_event(
        self,
        calendar: str,
        uid: str,
        summary: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> CalendarEvent:
        """Rewrite an event with the given fields changed, guarded by its ETag."""
        current = await self.get_event(calendar, uid)
        merged = current.model_copy(
            update={
                key: value
                for key, value in (
                    ("summary", summary),
                    ("start", start),
                    ("end", end),
                    ("description", description),
                    ("location", location),
                )
                if value is not None
            }
        )
        headers = dict(ICS_HEADERS)
        if current.etag:
            headers["If-Match"] = current.etag
        response = await self._request(
            "PUT",
            self.href_url(current.href),
            headers=headers,
            content=build_event(
                uid,
                merged.summary,
                merged.start,
                merged.end,
                merged.description,
                merged.location,
            ),
        )
        merged.etag = response.headers.get("ETag")
        logger.info("Updated event %s in calendar '%s'", uid, calendar)
        return merged

    async def delete_event(self, calendar: str, uid: str) -> None:
        """Delete an event by UID."""
        event = await self.get_event(calendar, uid)
        await self._request("DELETE", self.href_url(event.href))
        logger.info("Deleted event %s from calendar '%s'", uid, calendar)
