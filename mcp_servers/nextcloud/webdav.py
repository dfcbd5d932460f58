"""File tools backed by WebDAV."""

import logging

from mcp_servers.nextcloud.app import mcp
from mcp_servers.nextcloud.clients import get_client, prefix_tool_name
from nextcloud_client.webdav import WebDAVClient

logger = logging.getLogger("nextcloud_mcp.webdav")


@mcp.tool(name=prefix_tool_name("webdav_list_directory"))
async def list_directory(path: str = "/") -> dict:
    """List files and folders in a directory of the user's storage.

    Args:
        path: Directory path relative to the storage root, e.g. "/Documents".

    Returns:
        Dictionary with entries (path, name, is_directory, size,
        content_type, last_modified) and their count.
    """
    entries = await get_client(WebDAVClient).list_directory(path)
    logger.info("Tool list_directory invoked — path='%s', found=%d", path, len(entries))
    return {"path": path, "count": len(entries), "entries": [e.model_dump() for e in entries]}


@mcp.tool(name=prefix_tool_name("webdav_read_file"))
async def read_file(path: str) -> dict:
    """Read a text file.

    Args:
        path: File path relative to the storage root.

    Returns:
        Dictionary with the path and its content (long files are truncated).
    """
    content = await get_client(WebDAVClient).read_file(path)
    logger.info("Tool read_file invoked — path='%s', chars=%d", path, len(content))
    return {"path": path, "content": content}


@mcp.tool(name=prefix_tool_name("webdav_write_file"))
async def write_file(path: str, content: str) -> dict:
    """Create or overwrite a text file.

    Args:
        path: File path relative to the storage root.
        content: Full new content of the file.
    """
    created = await get_client(WebDAVClient).write_file(path, content)
    logger.info("Tool write_file invoked — path='%s', created=%s", path, created)
    return {"path": path, "created": created, "message": f"Wrote {len(content)} characters."}


@mcp.tool(name=prefix_tool_name("webdav_create_directory"))
async def create_directory(path: str) -> dict:
    """Create a directory. The parent directory must exist."""
    await get_client(WebDAVClient).create_directory(path)
    logger.info("Tool create_directory invoked — path='%s'", path)
    return {"path": path, "created": True}


@mcp.tool(name=prefix_tool_name("webdav_delete_resource"))
async def delete_resource(path: str) -> dict:
    """Delete a file, or a directory together with its contents."""
    await get_client(WebDAVClient).delete_resource(path)
    logger.info("Tool delete_resource invoked — path='%s'", path)
    return {"path": path, "deleted": True}
