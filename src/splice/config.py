"""Configuration settings for Splice.

Settings are read from ``SPLICE_*`` environment variables and an optional
``.env`` file. There is no module-level settings instance: build a
``Settings`` where it is needed and pass the resolved paths explicitly.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_MESSAGE = "You have been uploaded to the internet"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SPLICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Workspace holding objects/ and checkpoints/ (default: <out>/.splice)
    workspace_dir: Path | None = Field(default=None)

    log_level: str = "info"
    system_message: str = DEFAULT_SYSTEM_MESSAGE

    # Decision folding: drop statuses outside the known set
    restrict_statuses: bool = True

    def resolve_workspace(self, out_dir: str | Path | None = None) -> Path:
        """Explicit workspace_dir, else ``<out_dir>/.splice``, else ``./.splice``."""
        if self.workspace_dir is not None:
            return Path(self.workspace_dir).expanduser().resolve()
        base = Path(out_dir) if out_dir is not None else Path.cwd()
        return (base / ".splice").expanduser().resolve()
