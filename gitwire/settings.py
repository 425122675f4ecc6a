"""Runtime settings for gitwire, read from ``GIT_WIRE_*`` environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = ".gitwire"


class GitWireSettings(BaseSettings):
    """Settings shared by the CLI and the library entry points."""

    model_config = SettingsConfigDict(
        env_prefix="GIT_WIRE_",
        use_attribute_docstrings=True,
    )

    config_file: str = DEFAULT_CONFIG_FILE
    """Name of the declarative config file at the repository root."""

    git_executable: str = "git"
    """git client used for every checkout."""

    workers: int | None = Field(default=None, ge=1)
    """Worker threads for parallel mode. None lets the pool pick."""

    temp_dir: str | None = None
    """Base directory for the per-run workspace. None uses the system default."""

    git_timeout: float | None = Field(default=None, gt=0)
    """Timeout in seconds for a single git subprocess. None waits forever."""


def get_settings() -> GitWireSettings:
    """Load settings from the current environment."""
    return GitWireSettings()
