"""
Configuration for the note archiver HTTP API.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class HttpSettings(BaseSettings):
    """HTTP API configuration."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8787)

    # CORS
    cors_origins: list[str] = Field(
        default=["app://obsidian.md", "http://localhost:3000"],
    )

    # How many recent notifications are buffered for GET /v1/notifications
    notification_backlog: int = Field(default=50, ge=1)

    model_config = {"env_prefix": "NOTE_ARCHIVER_HTTP_"}
