"""The shared FastMCP instance the tool modules register on."""

from mcp.server.fastmcp import FastMCP

from service.config import settings

mcp = FastMCP(
    "nextcloud-mcp",
    host=settings.host,
    port=settings.port,
    stateless_http=True,
    json_response=True,
)
