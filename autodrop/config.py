"""Configuration management for autodrop."""

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.dropboxapi.com/2"
DEFAULT_CONTENT_URL = "https://content.dropboxapi.com/2"

ACCESS_TOKEN_KEY = "DROPBOX_ACCESS_TOKEN"


class LocationSettings(BaseSettings):
    """Where autodrop keeps its files (``AUTODROP_CONFIG_DIR``)."""

    model_config = SettingsConfigDict(env_prefix="AUTODROP_", extra="ignore")

    config_dir: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "autodrop"
    )


class DropboxSettings(BaseSettings):
    """Dropbox credentials and endpoints.

    Environment variables (``DROPBOX_ACCESS_TOKEN``, ``DROPBOX_API_URL``,
    ``DROPBOX_CONTENT_URL``) win over the same keys in the config file.
    """

    model_config = SettingsConfigDict(
        env_prefix="DROPBOX_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    access_token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    content_url: str = DEFAULT_CONTENT_URL


class Config:
    """Runtime configuration.

    Settings are resolved on every access, so a token saved by
    ``autodrop init`` is visible immediately.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = LocationSettings().config_dir
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / "config"

    def _settings(self) -> DropboxSettings:
        return DropboxSettings(_env_file=self.config_file)

    @property
    def access_token(self) -> Optional[str]:
        """Dropbox access token (env var wins over the config file)."""
        return self._settings().access_token or None

    @property
    def api_url(self) -> str:
        return self._settings().api_url

    @property
    def content_url(self) -> str:
        return self._settings().content_url

    @property
    def state_dir(self) -> Path:
        """Directory holding the per-pair snapshot files."""
        return self.config_dir / "sync_state"

    @property
    def pairs_file(self) -> Path:
        return self.config_dir / "sync_pairs.json"

    @property
    def history_file(self) -> Path:
        return self.config_dir / "sync_history.json"

    def is_configured(self) -> bool:
        """Check whether an access token is available."""
        return self.access_token is not None

    def save_access_token(self, token: str) -> None:
        """Persist the access token to the config file.

        Other lines already present in the file are kept.

        Args:
            token: Dropbox access token
        """
        lines: list[str] = []
        if self.config_file.exists():
            lines = [
                line
                for line in self.config_file.read_text(encoding="utf-8").splitlines()
                if not line.strip().startswith(f"{ACCESS_TOKEN_KEY}=")
            ]
        lines.append(f"{ACCESS_TOKEN_KEY}={token}")

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        self.config_file.chmod(0o600)
        logger.debug(f"Saved access token to {self.config_file}")


config = Config()
