"""Client for the Nextcloud Tables API (v1)."""

from __future__ import annotations

import logging
from typing import Any, Optional

from nextcloud_client.base import BaseNextcloudClient
from nextcloud_client.models import Table, TableColumn, TableRow

logger = logging.getLogger(__name__)

TABLES_API = "/apps/tables/api/1"


def _parse_row(raw: dict[str, Any]) -> TableRow:
    """Flatten ``[{columnId, value}, ...]`` into ``{column_id: value}``."""
    return TableRow(
        id=raw["id"],
        data={cell["columnId"]: cell.get("value") for cell in raw.get("data") or []},
    )


class TablesClient(BaseNextcloudClient):
    """Tables, their columns and rows."""

    def _url(self, path: str) -> str:
        return self.app_url(f"{TABLES_API}{path}")

    async def list_tables(self) -> list[Table]:
        data = await self._request_json("GET", self._url("/tables"))
        return [Table.model_validate(t) for t in data or []]

    async def get_schema(self, table_id: int) -> list[TableColumn]:
        """Column definitions of a table."""
        data = await self._request_json("GET", self._url(f"/tables/{table_id}/columns"))
        return [TableColumn.model_validate(c) for c in data or []]

    async def read_table(
        self,
        table_id: int,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[TableRow]:
        """Rows of a table, optionally paginated."""
        params = {
            key: value
            for key, value in (("limit", limit), ("offset", offset))
            if value is not None
        }
        data = await self._request_json(
            "GET", self._url(f"/tables/{table_id}/rows"), params=params or None
        )
        return [_parse_row(r) for r in data or []]

    async def insert_row(self, table_id: int, data: dict[str, Any]) -> TableRow:
        """Insert a row. Keys may be column ids or column titles."""
        values = await self._resolve_columns(table_id, data)
        raw = await self._request_json(
            "POST", self._url(f"/tables/{table_id}/rows"), json={"data": values}
        )
        row = _parse_row(raw)
        logger.info("Inserted row %s into table %s", row.id, table_id)
        return row

    async def update_row(
        self, row_id: int, data: dict[str, Any], table_id: Optional[int] = None
    ) -> TableRow:
        """Update cells of a row.

        Column titles can only be resolved when *table_id* is given;
        otherwise keys must be column ids.
        """
        if table_id is not None:
            values = await self._resolve_columns(table_id, data)
        elif all(str(key).isdigit() for key in data):
            values = {str(key): value for key, value in data.items()}
        else:
            raise ValueError("Column titles can only be used together with table_id")
        raw = await self._request_json(
            "PUT", self._url(f"/rows/{row_id}"), json={"data": values}
        )
        return _parse_row(raw)

    async def delete_row(self, row_id: int) -> None:
        await self._request("DELETE", self._url(f"/rows/{row_id}"))
        logger.info("Deleted row %s", row_id)

    async def _resolve_columns(
        self, table_id: int, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Map column titles (case-insensitive) or ids to id strings."""
        if all(str(key).isdigit() for key in data):
            return {str(key): value for key, value in data.items()}

        by_title = {c.title.lower(): c.id for c in await self.get_schema(table_id)}
        resolved: dict[str, Any] = {}
        for key, value in data.items():
            if str(key).isdigit():
                resolved[str(key)] = value
                continue
            column_id = by_title.get(str(key).lower())
            if column_id is None:
                raise ValueError(f"Unknown column '{key}' in table {table_id}")
            resolved[str(column_id)] = value
        return resolved
