"""Notes tools: create, read, search, update and delete Nextcloud notes."""

import logging
from typing import Optional

from mcp_servers.nextcloud.app import mcp
from mcp_servers.nextcloud.clients import get_client, prefix_tool_name
from nextcloud_client.notes import NotesClient

logger = logging.getLogger("nextcloud_mcp.notes")

SNIPPET_CHARS = 200


@mcp.tool(name=prefix_tool_name("notes_create_note"))
async def create_note(title: str, content: str, category: str = "") -> dict:
    """Create a new note in Nextcloud Notes.

    Use this tool when the user wants to write down, store, or remember a
    piece of information in their Nextcloud.

    Args:
        title: Short descriptive title for the note.
        content: The full body of the note (Markdown).
        category: Optional category (folder) for the note.

    Returns:
        Dictionary with the created note, including its id and etag.
    """
    note = await get_client(NotesClient).create_note(title, content, category)
    logger.info("Tool create_note invoked — id=%s", note.id)
    return {
        "note": note.model_dump(),
        "message": f"Note '{note.title}' created successfully.",
    }


@mcp.tool(name=prefix_tool_name("notes_get_note"))
async def get_note(note_id: int) -> dict:
    """Fetch a single note with its full content and current etag.

    Args:
        note_id: Numeric id of the note.

    Returns:
        Dictionary with the note.
    """
    note = await get_client(NotesClient).get_note(note_id)
    logger.info("Tool get_note invoked — id=%s", note_id)
    return {"note": note.model_dump()}


@mcp.tool(name=prefix_tool_name("notes_list_notes"))
async def list_notes(category: Optional[str] = None) -> dict:
    """List notes, optionally only those in one category.

    Args:
        category: Optional category to filter by (case-insensitive).

    Returns:
        Dictionary with the notes (id, title, category, etag, modified) and
        their count.
    """
    notes = await get_client(NotesClient).get_all_notes()
    if category is not None:
        notes = [n for n in notes if n.category.lower() == category.lower()]
    logger.info("Tool list_notes invoked — found=%d", len(notes))
    return {
        "count": len(notes),
        "notes": [
            n.model_dump(include={"id", "title", "category", "etag", "modified"})
            for n in notes
        ],
    }


@mcp.tool(name=prefix_tool_name("notes_update_note"))
async def update_note(
    note_id: int,
    etag: str,
    title: Optional[str] = None,
    content: Optional[str] = None,
    category: Optional[str] = None,
) -> dict:
    """Update a note's title, content and/or category.

    The etag must be the one returned when the note was last read. If the
    note changed since then the update is rejected with a precondition
    failure; re-read the note and try again.

    Args:
        note_id: Numeric id of the note.
        etag: Version tag from the last read of the note.
        title: New title, or omit to keep the current one.
        content: New content, or omit to keep the current one.
        category: New category, or omit to keep the current one.

    Returns:
        Dictionary with the updated note and its new etag.
    """
    note = await get_client(NotesClient).update_note(
        note_id, etag, title=title, content=content, category=category
    )
    logger.info("Tool update_note invoked — id=%s", note_id)
    return {"note": note.model_dump(), "message": f"Note {note_id} updated."}


@mcp.tool(name=prefix_tool_name("notes_append_content"))
async def append_content(note_id: int, content: str) -> dict:
    """Append text to the end of an existing note on a new line.

    Use this tool to add to a note without needing its etag.

    Args:
        note_id: Numeric id of the note.
        content: Text to append.

    Returns:
        Dictionary with the updated note.
    """
    note = await get_client(NotesClient).append_content(note_id, content)
    logger.info("Tool append_content invoked — id=%s", note_id)
    return {"note": note.model_dump(), "message": f"Content appended to note {note_id}."}


@mcp.tool(name=prefix_tool_name("notes_search_notes"))
async def search_notes(query: str) -> dict:
    """Search notes by keyword (substring match on title and content).

    Args:
        query: The search string, matched case-insensitively.

    Returns:
        Dictionary with matching notes (content shortened) and their count.
    """
    results = await get_client(NotesClient).search_notes(query)
    logger.info("Tool search_notes invoked — query='%s', found=%d", query, len(results))
    return {
        "count": len(results),
        "notes": [
            {
                "id": n.id,
                "title": n.title,
                "category": n.category,
                "etag": n.etag,
                "snippet": n.content[:SNIPPET_CHARS],
            }
            for n in results
        ],
    }


@mcp.tool(name=prefix_tool_name("notes_delete_note"))
async def delete_note(note_id: int) -> dict:
    """Permanently delete a note.

    Args:
        note_id: Numeric id of the note.

    Returns:
        Dictionary confirming the deletion.
    """
    await get_client(NotesClient).delete_note(note_id)
    logger.info("Tool delete_note invoked — id=%s", note_id)
    return {"deleted": True, "note_id": note_id}
