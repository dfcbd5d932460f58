"""Nextcloud credentials and their per-request binding."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NextcloudCredentials:
    """Host URL plus username and password (or app token)."""

    host: str
    username: str
    password: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", self.host.rstrip("/"))

    def __repr__(self) -> str:
        return (
            f"NextcloudCredentials(host={self.host!r}, "
            f"username={self.username!r}, password='***')"
        )

    @classmethod
    def from_values(
        cls,
        host: Optional[str],
        username: Optional[str],
        password: Optional[str],
    ) -> Optional[NextcloudCredentials]:
        """Build credentials only when all three values are present."""
        if host and username and password:
            return cls(host=host, username=username, password=password)
        return None


# Bound by the HTTP layer for the duration of one /mcp request when the
# caller supplies credentials as query parameters.
_request_credentials: contextvars.ContextVar[NextcloudCredentials | None] = (
    contextvars.ContextVar("_request_credentials", default=None)
)


def bind_request_credentials(
    credentials: NextcloudCredentials,
) -> contextvars.Token:
    """Bind credentials to the current context. Returns a reset token."""
    return _request_credentials.set(credentials)


def reset_request_credentials(token: contextvars.Token) -> None:
    """Undo a previous :func:`bind_request_credentials`."""
    _request_credentials.reset(token)


def request_credentials() -> NextcloudCredentials | None:
    """Credentials bound to the current request, if any."""
    return _request_credentials.get()
