"""Unit tests for nextcloud_client.tables."""

from __future__ import annotations

import json

import httpx
import pytest

from nextcloud_client.tables import TablesClient

API = "/index.php/apps/tables/api/1"

COLUMNS = [
    {"id": 1, "title": "Name", "type": "text", "subtype": "line", "mandatory": True},
    {"id": 2, "title": "Qty", "type": "number"},
]


def _make_client(credentials, requests: list[httpx.Request]) -> TablesClient:
    """TablesClient against a fake Tables API with one table (id 7)."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path, method = request.url.path, request.method
        if method == "GET" and path == f"{API}/tables":
            return httpx.Response(
                200,
                json=[{"id": 7, "title": "Inventory", "ownerDisplayName": "Alice", "rowsCount": 2}],
            )
        if method == "GET" and path == f"{API}/tables/7/columns":
            return httpx.Response(200, json=COLUMNS)
        if method == "GET" and path == f"{API}/tables/7/rows":
            return httpx.Response(
                200,
                json=[
                    {"id": 100, "data": [{"columnId": 1, "value": "bolts"}, {"columnId": 2, "value": 5}]},
                ],
            )
        if method in ("POST", "PUT"):
            data = json.loads(request.content)["data"]
            return httpx.Response(
                200,
                json={
                    "id": 101,
                    "data": [{"columnId": int(k), "value": v} for k, v in data.items()],
                },
            )
        if method == "DELETE":
            return httpx.Response(200, json={"id": 101})
        return httpx.Response(404)

    return TablesClient(credentials, transport=httpx.MockTransport(handler))


class TestTablesClient:
    @pytest.mark.asyncio
    async def test_list_tables(self, credentials):
        tables = await _make_client(credentials, []).list_tables()
        assert tables[0].title == "Inventory"
        assert tables[0].owner_display_name == "Alice"
        assert tables[0].rows_count == 2

    @pytest.mark.asyncio
    async def test_read_table_flattens_cells(self, credentials):
        requests: list[httpx.Request] = []
        rows = await _make_client(credentials, requests).read_table(7, limit=10, offset=5)

        assert rows[0].id == 100
        assert rows[0].data == {1: "bolts", 2: 5}
        assert requests[0].url.params["limit"] == "10"
        assert requests[0].url.params["offset"] == "5"

    @pytest.mark.asyncio
    async def test_insert_row_resolves_titles(self, credentials):
        """Column titles are matched case-insensitively to column ids."""
        requests: list[httpx.Request] = []
        row = await _make_client(credentials, requests).insert_row(
            7, {"name": "nuts", "QTY": 3}
        )

        post = requests[-1]
        assert json.loads(post.content) == {"data": {"1": "nuts", "2": 3}}
        assert row.data == {1: "nuts", 2: 3}

    @pytest.mark.asyncio
    async def test_insert_row_with_ids_skips_schema(self, credentials):
        requests: list[httpx.Request] = []
        await _make_client(credentials, requests).insert_row(7, {"1": "nuts"})
        assert [r.method for r in requests] == ["POST"]

    @pytest.mark.asyncio
    async def test_unknown_column_rejected(self, credentials):
        with pytest.raises(ValueError, match="Unknown column"):
            await _make_client(credentials, []).insert_row(7, {"Colour": "red"})

    @pytest.mark.asyncio
    async def test_update_row_titles_need_table_id(self, credentials):
        client = _make_client(credentials, [])
        with pytest.raises(ValueError):
            await client.update_row(101, {"Name": "x"})

        row = await client.update_row(101, {"Name": "x"}, table_id=7)
        assert row.data == {1: "x"}

    @pytest.mark.asyncio
    async def test_delete_row(self, credentials):
        requests: list[httpx.Request] = []
        await _make_client(credentials, requests).delete_row(101)
        assert requests[0].method == "DELETE"
        assert requests[0].url.path == f"{API}/rows/101"
