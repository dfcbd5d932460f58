"""
Nextcloud MCP Server

Exposes Nextcloud Notes, Calendar, Contacts, Tables and WebDAV files as
tools via the Model Context Protocol.  The server is stateless: every
streamable-HTTP request is handled on its own, which lets the HTTP service
in ``service.main`` bind per-request credentials.
"""

import logging
from datetime import UTC, datetime

from mcp_servers.nextcloud import calendar, contacts, notes, tables, webdav  # noqa: F401
from mcp_servers.nextcloud.app import mcp
from mcp_servers.nextcloud.clients import prefix_tool_name
from service.config import settings

logger = logging.getLogger("nextcloud_mcp")

# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------
@mcp.tool(name=prefix_tool_name("hello"))
async def hello() -> dict:
    """A simple test tool to verify that the MCP server is working correctly.

    Returns:
        Dictionary with a greeting, the current timestamp, the transport and
        the names of every registered tool.
    """
    tool_names = [tool.name for tool in await mcp.list_tools()]
    logger.info("Tool hello invoked — tools=%d", len(tool_names))
    return {
        "message": "Hello from Nextcloud MCP!",
        "timestamp": datetime.now(UTC).isoformat(),
        "transport": "streamable-http",
        "available_tools": tool_names,
        "total_tools": len(tool_names),
    }


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )
    logger.info("Starting Nextcloud MCP server on stdio ...")
    mcp.run(transport="stdio")
