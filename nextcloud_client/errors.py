"""Error taxonomy for calls against a Nextcloud instance.

Every failure raised by the resource clients is a ``NextcloudError`` so tool
handlers can let them propagate and the MCP layer reports them as tool
errors.
"""

from __future__ import annotations


class NextcloudError(Exception):
    """Base class for all Nextcloud client failures."""


class TransportError(NextcloudError):
    """The instance could not be reached (DNS, refused connection, timeout)."""


class NextcloudAPIError(NextcloudError):
    """The instance answered with a non-success status code."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code} {message}")
        self.status_code = status_code
        self.message = message


class AuthError(NextcloudAPIError):
    """Credentials were rejected (401/403) or are not configured at all."""


class NotFoundError(NextcloudAPIError):
    """The requested resource does not exist (404)."""


class PreconditionFailedError(NextcloudAPIError):
    """The supplied version tag no longer matches the resource (412)."""
