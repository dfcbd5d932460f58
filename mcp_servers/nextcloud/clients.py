"""Resolve Nextcloud credentials and build resource clients for tool calls."""

from __future__ import annotations

from typing import TypeVar

from nextcloud_client.base import BaseNextcloudClient
from nextcloud_client.credentials import NextcloudCredentials, request_credentials
from nextcloud_client.errors import AuthError
from service.config import settings

TOOL_PREFIX = "nextcloud_"

C = TypeVar("C", bound=BaseNextcloudClient)


def prefix_tool_name(name: str) -> str:
    """Namespace a tool name, e.g. ``notes_create_note`` -> ``nextcloud_notes_create_note``."""
    return f"{TOOL_PREFIX}{name}"


def current_credentials() -> NextcloudCredentials:
    """Credentials of the current request, else those from the environment."""
    credentials = request_credentials() or settings.nextcloud_credentials
    if credentials is None:
        raise AuthError(
            401,
            "Nextcloud credentials are not configured. Set NEXTCLOUD_HOST, "
            "NEXTCLOUD_USERNAME and NEXTCLOUD_PASSWORD, or pass nextcloudHost, "
            "nextcloudUsername and nextcloudPassword as query parameters.",
        )
    return credentials


def get_client(client_cls: type[C]) -> C:
    """Instantiate *client_cls* for the current credentials."""
    return client_cls(current_credentials())
