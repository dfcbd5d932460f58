"""Calendar tools backed by CalDAV."""

import logging
from typing import Optional

from mcp_servers.nextcloud.app import mcp
from mcp_servers.nextcloud.clients import get_client, prefix_tool_name
from nextcloud_client.calendar import CalendarClient

logger = logging.getLogger("nextcloud_mcp.calendar")


@mcp.tool(name=prefix_tool_name("calendar_list_calendars"))
async def list_calendars() -> dict:
    """List the user's calendars.

    Returns:
        Dictionary with calendars (name, display_name, color) and their count.
        Use ``name`` as the calendar argument of the other calendar tools.
    """
    calendars = await get_client(CalendarClient).list_calendars()
    logger.info("Tool list_calendars invoked — found=%d", len(calendars))
    return {"count": len(calendars), "calendars": [c.model_dump() for c in calendars]}


@mcp.tool(name=prefix_tool_name("calendar_create_event"))
async def create_event(
    calendar: str,
    summary: str,
    start: str,
    end: Optional[str] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
) -> dict:
    """Create a calendar event.

    Args:
        calendar: Calendar name, e.g. "personal".
        summary: Event title.
        start: ISO-8601 start, e.g. "2025-03-01T09:00:00+01:00", or a date
            "2025-03-01" for an all-day event.
        end: Optional ISO-8601 end.
        description: Optional longer description.
        location: Optional location.

    Returns:
        Dictionary with the created event including its uid.
    """
    event = await get_client(CalendarClient).create_event(
        calendar, summary, start, end, description, location
    )
    logger.info("Tool create_event invoked — uid=%s", event.uid)
    return {"event": event.model_dump(), "message": f"Event '{summary}' created."}


@mcp.tool(name=prefix_tool_name("calendar_list_events"))
async def list_events(
    calendar: str, start: Optional[str] = None, end: Optional[str] = None
) -> dict:
    """List events of a calendar, optionally within a time range.

    Args:
        calendar: Calendar name.
        start: Optional ISO-8601 lower bound.
        end: Optional ISO-8601 upper bound.

    Returns:
        Dictionary with the events and their count.
    """
    events = await get_client(CalendarClient).list_events(calendar, start, end)
    logger.info("Tool list_events invoked — calendar='%s', found=%d", calendar, len(events))
    return {"count": len(events), "events": [e.model_dump() for e in events]}


@mcp.tool(name=prefix_tool_name("calendar_get_event"))
async def get_event(calendar: str, uid: str) -> dict:
    """Fetch one event by its uid."""
    event = await get_client(CalendarClient).get_event(calendar, uid)
    return {"event": event.model_dump()}


@mcp.tool(name=prefix_tool_name("calendar_update_event"))
async def update_event(
    calendar: str,
    uid: str,
    summary: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
    description: Optional[str] = None,
    location: Optional[str] = None,
) -> dict:
    """Change fields of an existing event; omitted fields are kept.

    Args:
        calendar: Calendar name.
        uid: Event uid.
        summary: New title.
        start: New ISO-8601 start.
        end: New ISO-8601 end.
        description: New description.
        location: New location.

    Returns:
        Dictionary with the updated event.
    """
    event = await get_client(CalendarClient).update_event(
        calendar,
        uid,
        summary=summary,
        start=start,
        end=end,
        description=description,
        location=location,
    )
    logger.info("Tool update_event invoked — uid=%s", uid)
    return {"event": event.model_dump(), "message": f"Event {uid} updated."}


@mcp.tool(name=prefix_tool_name("calendar_delete_event"))
async def delete_event(calendar: str, uid: str) -> dict:
    """Delete an event by its uid."""
    await get_client(CalendarClient).delete_event(calendar, uid)
    logger.info("Tool delete_event invoked — uid=%s", uid)
    return {"deleted": True, "uid": uid}
