"""Service configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from the environment or a .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "NOTES_",
    }

    # Storage
    storage_backend: Literal["memory", "file"] = "file"
    data_file: Path = Path("data/notes.json")

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    allowed_origins: list[str] = ["*"]

    # MCP server
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8001

    log_level: str = "INFO"

    @property
    def log_format(self) -> str:
        return "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
