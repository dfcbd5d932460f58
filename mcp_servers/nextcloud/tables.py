"""Tables tools for the Nextcloud Tables app."""

import logging
from typing import Any, Optional

from mcp_servers.nextcloud.app import mcp
from mcp_servers.nextcloud.clients import get_client, prefix_tool_name
from nextcloud_client.tables import TablesClient

logger = logging.getLogger("nextcloud_mcp.tables")

MAX_ROWS = 500


@mcp.tool(name=prefix_tool_name("tables_list_tables"))
async def list_tables() -> dict:
    """List all tables the user can access."""
    tables = await get_client(TablesClient).list_tables()
    logger.info("Tool list_tables invoked — found=%d", len(tables))
    return {"count": len(tables), "tables": [t.model_dump() for t in tables]}


@mcp.tool(name=prefix_tool_name("tables_get_schema"))
async def get_schema(table_id: int) -> dict:
    """Return the columns (id, title, type) of a table.

    Use this before inserting or updating rows to learn the column names.
    """
    columns = await get_client(TablesClient).get_schema(table_id)
    return {"table_id": table_id, "columns": [c.model_dump() for c in columns]}


@mcp.tool(name=prefix_tool_name("tables_read_table"))
async def read_table(table_id: int, limit: int = 100, offset: int = 0) -> dict:
    """Read rows of a table.

    Args:
        table_id: Numeric table id.
        limit: Maximum rows to return (1-500, default 100).
        offset: Number of rows to skip.

    Returns:
        Dictionary with rows as ``{"id": ..., "data": {column_id: value}}``.
    """
    limit = max(1, min(limit, MAX_ROWS))
    rows = await get_client(TablesClient).read_table(table_id, limit=limit, offset=offset)
    logger.info("Tool read_table invoked — table=%s, rows=%d", table_id, len(rows))
    return {"table_id": table_id, "count": len(rows), "rows": [r.model_dump() for r in rows]}


@mcp.tool(name=prefix_tool_name("tables_insert_row"))
async def insert_row(table_id: int, data: dict[str, Any]) -> dict:
    """Insert a row.

    Args:
        table_id: Numeric table id.
        data: Cell values keyed by column title or column id.
    """
    row = await get_client(TablesClient).insert_row(table_id, data)
    logger.info("Tool insert_row invoked — table=%s, row=%s", table_id, row.id)
    return {"row": row.model_dump(), "message": f"Row {row.id} inserted."}


@mcp.tool(name=prefix_tool_name("tables_update_row"))
async def update_row(
    row_id: int, data: dict[str, Any], table_id: Optional[int] = None
) -> dict:
    """Update cells of a row.

    Args:
        row_id: Numeric row id.
        data: Cell values keyed by column id, or by column title when
            table_id is given.
        table_id: Table of the row; needed to resolve column titles.
    """
    row = await get_client(TablesClient).update_row(row_id, data, table_id=table_id)
    logger.info("Tool update_row invoked — row=%s", row_id)
    return {"row": row.model_dump(), "message": f"Row {row_id} updated."}


@mcp.tool(name=prefix_tool_name("tables_delete_row"))
async def delete_row(row_id: int) -> dict:
    """Delete a row by id."""
    await get_client(TablesClient).delete_row(row_id)
    return {"deleted": True, "row_id": row_id}
