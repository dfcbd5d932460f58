"""Service configuration loaded from environment variables."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic_settings import BaseSettings

from nextcloud_client.credentials import NextcloudCredentials


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Nextcloud (fallback when a request carries no credentials)
    nextcloud_host: Optional[str] = None
    nextcloud_username: Optional[str] = None
    nextcloud_password: Optional[str] = None

    # Analytics persistence
    analytics_backend: Literal["file", "redis"] = "file"
    analytics_file: str = "/app/data/nextcloud-mcp-analytics.json"
    analytics_save_interval: int = 300  # seconds
    redis_url: str = "redis://localhost:6379"

    @property
    def nextcloud_credentials(self) -> NextcloudCredentials | None:
        """Credentials from the environment, if all three are set."""
        return NextcloudCredentials.from_values(
            self.nextcloud_host, self.nextcloud_username, self.nextcloud_password
        )


settings = Settings()
