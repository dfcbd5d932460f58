"""Shared test setup.

Environment is fixed before any project module reads ``service.config``:
analytics go to a throwaway file and no Nextcloud instance is configured.
"""

import os
import tempfile
from pathlib import Path

_ANALYTICS_DIR = Path(tempfile.mkdtemp(prefix="nextcloud-mcp-tests-"))
os.environ["ANALYTICS_FILE"] = str(_ANALYTICS_DIR / "analytics.json")
os.environ["ANALYTICS_BACKEND"] = "file"
for _var in ("NEXTCLOUD_HOST", "NEXTCLOUD_USERNAME", "NEXTCLOUD_PASSWORD"):
    os.environ.pop(_var, None)

import pytest  # noqa: E402

from nextcloud_client.credentials import NextcloudCredentials  # noqa: E402


@pytest.fixture()
def credentials() -> NextcloudCredentials:
    """Credentials for a fake instance at cloud.example.com."""
    return NextcloudCredentials(
        host="https://cloud.example.com", username="alice", password="app-token"
    )
