"""Unit tests for the MCP tool layer (mcp_servers.nextcloud).

Resource clients are replaced with mocks; these tests cover argument
passing, result shaping, credential resolution and tool registration.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mcp_servers.nextcloud import calendar, contacts, notes, tables, webdav
from mcp_servers.nextcloud.clients import current_credentials, get_client
from mcp_servers.nextcloud.server import hello, mcp
from nextcloud_client.credentials import (
    NextcloudCredentials,
    bind_request_credentials,
    reset_request_credentials,
)
from nextcloud_client.errors import AuthError, PreconditionFailedError
from nextcloud_client.models import (
    CalendarEvent,
    Contact,
    DavResource,
    Note,
    TableRow,
)
from nextcloud_client.notes import NotesClient

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _patch_client(module, client: MagicMock):
    """Make ``get_client`` in *module* return *client*."""
    return patch.object(module, "get_client", return_value=client)


def _note(**overrides) -> Note:
    fields = {"id": 1, "etag": "T1", "title": "Groceries", "content": "milk", "category": "home"}
    fields.update(overrides)
    return Note(**fields)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestCredentialResolution:
    def test_missing_credentials_raise_auth_error(self):
        with patch("mcp_servers.nextcloud.clients.settings") as mock_settings:
            mock_settings.nextcloud_credentials = None
            with pytest.raises(AuthError, match="not configured"):
                current_credentials()

    def test_environment_fallback(self):
        env_creds = NextcloudCredentials("https://env.example.com", "env", "pw")
        with patch("mcp_servers.nextcloud.clients.settings") as mock_settings:
            mock_settings.nextcloud_credentials = env_creds
            assert current_credentials() == env_creds

    def test_request_credentials_win(self):
        request_creds = NextcloudCredentials("https://req.example.com", "req", "pw")
        env_creds = NextcloudCredentials("https://env.example.com", "env", "pw")
        token = bind_request_credentials(request_creds)
        try:
            with patch("mcp_servers.nextcloud.clients.settings") as mock_settings:
                mock_settings.nextcloud_credentials = env_creds
                client = get_client(NotesClient)
        finally:
            reset_request_credentials(token)
        assert client.credentials == request_creds


# ---------------------------------------------------------------------------
# Notes tools
# ---------------------------------------------------------------------------


class TestNotesTools:
    @pytest.mark.asyncio
    async def test_create_note(self):
        client = MagicMock()
        client.create_note = AsyncMock(return_value=_note(etag="T0"))
        with _patch_client(notes, client):
            result = await notes.create_note("Groceries", "milk", "home")

        client.create_note.assert_awaited_once_with("Groceries", "milk", "home")
        assert result["note"]["etag"] == "T0"
        assert "created" in result["message"]

    @pytest.mark.asyncio
    async def test_list_notes_filters_category(self):
        client = MagicMock()
        client.get_all_notes = AsyncMock(
            return_value=[_note(id=1, category="Home"), _note(id=2, category="work")]
        )
        with _patch_client(notes, client):
            result = await notes.list_notes(category="home")

        assert result["count"] == 1
        assert result["notes"][0]["id"] == 1
        assert "content" not in result["notes"][0]

    @pytest.mark.asyncio
    async def test_update_note_passes_etag(self):
        client = MagicMock()
        client.update_note = AsyncMock(return_value=_note(etag="T2", content="z"))
        with _patch_client(notes, client):
            result = await notes.update_note(1, "T0", content="z")

        client.update_note.assert_awaited_once_with(
            1, "T0", title=None, content="z", category=None
        )
        assert result["note"]["etag"] == "T2"

    @pytest.mark.asyncio
    async def test_precondition_failure_propagates(self):
        """Conflicts surface as errors so the MCP layer reports a tool error."""
        client = MagicMock()
        client.update_note = AsyncMock(
            side_effect=PreconditionFailedError(412, "Precondition Failed")
        )
        with _patch_client(notes, client):
            with pytest.raises(PreconditionFailedError):
                await notes.update_note(1, "stale", content="z")

    @pytest.mark.asyncio
    async def test_search_returns_snippets(self):
        client = MagicMock()
        client.search_notes = AsyncMock(return_value=[_note(content="x" * 500)])
        with _patch_client(notes, client):
            result = await notes.search_notes("x")

        assert result["count"] == 1
        assert len(result["notes"][0]["snippet"]) == notes.SNIPPET_CHARS

    @pytest.mark.asyncio
    async def test_delete_note(self):
        client = MagicMock()
        client.delete_note = AsyncMock(return_value=None)
        with _patch_client(notes, client):
            result = await notes.delete_note(3)
        assert result == {"deleted": True, "note_id": 3}


# ---------------------------------------------------------------------------
# Other resource families
# ---------------------------------------------------------------------------


class TestOtherTools:
    @pytest.mark.asyncio
    async def test_calendar_create_event(self):
        client = MagicMock()
        client.create_event = AsyncMock(
            return_value=CalendarEvent(uid="e1", summary="Lunch", start="2025-03-01")
        )
        with _patch_client(calendar, client):
            result = await calendar.create_event("personal", "Lunch", "2025-03-01")

        client.create_event.assert_awaited_once_with(
            "personal", "Lunch", "2025-03-01", None, None, None
        )
        assert result["event"]["uid"] == "e1"

    @pytest.mark.asyncio
    async def test_contacts_list_contacts(self):
        client = MagicMock()
        client.list_contacts = AsyncMock(
            return_value=[Contact(uid="c1", full_name="Ada", emails=["ada@example.com"])]
        )
        with _patch_client(contacts, client):
            result = await contacts.list_contacts("contacts")

        assert result["count"] == 1
        assert result["contacts"][0]["emails"] == ["ada@example.com"]

    @pytest.mark.asyncio
    async def test_tables_read_table_clamps_limit(self):
        client = MagicMock()
        client.read_table = AsyncMock(return_value=[TableRow(id=1, data={1: "a"})])
        with _patch_client(tables, client):
            await tables.read_table(7, limit=10_000)

        client.read_table.assert_awaited_once_with(7, limit=tables.MAX_ROWS, offset=0)

    @pytest.mark.asyncio
    async def test_webdav_list_directory(self):
        client = MagicMock()
        client.list_directory = AsyncMock(
            return_value=[DavResource(path="/a.txt", name="a.txt", is_directory=False)]
        )
        with _patch_client(webdav, client):
            result = await webdav.list_directory("/")

        assert result["entries"][0]["name"] == "a.txt"


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


EXPECTED_TOOLS = {
    "nextcloud_hello",
    "nextcloud_notes_create_note",
    "nextcloud_notes_get_note",
    "nextcloud_notes_list_notes",
    "nextcloud_notes_update_note",
    "nextcloud_notes_append_content",
    "nextcloud_notes_search_notes",
    "nextcloud_notes_delete_note",
    "nextcloud_calendar_list_calendars",
    "nextcloud_calendar_create_event",
    "nextcloud_calendar_list_events",
    "nextcloud_calendar_get_event",
    "nextcloud_calendar_update_event",
    "nextcloud_calendar_delete_event",
    "nextcloud_contacts_list_addressbooks",
    "nextcloud_contacts_create_addressbook",
    "nextcloud_contacts_delete_addressbook",
    "nextcloud_contacts_list_contacts",
    "nextcloud_contacts_create_contact",
    "nextcloud_contacts_delete_contact",
    "nextcloud_tables_list_tables",
    "nextcloud_tables_get_schema",
    "nextcloud_tables_read_table",
    "nextcloud_tables_insert_row",
    "nextcloud_tables_update_row",
    "nextcloud_tables_delete_row",
    "nextcloud_webdav_list_directory",
    "nextcloud_webdav_read_file",
    "nextcloud_webdav_write_file",
    "nextcloud_webdav_create_directory",
    "nextcloud_webdav_delete_resource",
}


class TestRegistration:
    def test_tool_modules_share_one_server(self):
        from mcp_servers.nextcloud.app import mcp as shared

        assert shared is mcp

    @pytest.mark.asyncio
    async def test_all_tools_registered(self):
        names = {tool.name for tool in await mcp.list_tools()}
        assert names == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_hello_lists_tools(self):
        result = await hello()
        assert result["message"] == "Hello from Nextcloud MCP!"
        assert result["transport"] == "streamable-http"
        assert result["total_tools"] == len(EXPECTED_TOOLS)
        assert set(result["available_tools"]) == EXPECTED_TOOLS
