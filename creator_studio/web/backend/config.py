"""Configuration for the web backend.

Every field can come from the environment, so settings given to
`python -m creator_studio.web` survive uvicorn's reload subprocess.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

ENV_PREFIX = "CREATOR_STUDIO_"


def _env(name: str, default: str | None = None) -> str | None:
    return os.environ.get(f"{ENV_PREFIX}{name}") or default


def _env_path(name: str) -> Path | None:
    value = _env(name)
    return Path(value) if value else None


def _env_flag(name: str) -> bool:
    return (_env(name) or "").lower() in ("1", "true", "yes", "on")


class WebConfig(BaseModel):
    """Web server configuration."""

    host: str = Field(default_factory=lambda: _env("HOST", "127.0.0.1"))
    port: int = Field(default_factory=lambda: int(_env("PORT", "8000")))
    projects_dir: Path = Field(default_factory=lambda: Path(_env("PROJECTS_DIR", "projects")))
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    # studio config.yaml, searched for when unset
    config_path: Path | None = Field(default_factory=lambda: _env_path("CONFIG"))
    # offline providers, no API keys needed
    mock_providers: bool = Field(default_factory=lambda: _env_flag("MOCK"))
