"""On-disk configuration (``~/.standup.json``): pydantic models + JSON file."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator

from standup.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path.home() / ".standup.json"


class GitHubSettings(BaseModel):
    username: str
    token: str


class GoogleClientSettings(BaseModel):
    client_id: str
    client_secret: str


class GoogleToken(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CalendarSettings(BaseModel):
    id: str


class Config(BaseModel):
    github: GitHubSettings
    google_client: GoogleClientSettings | None = None
    google_token: GoogleToken | None = None
    gcal: CalendarSettings | None = None

    @classmethod
    def load(cls, path: Path) -> Config | None:
        """Read the config file. Returns None if it does not exist."""
        if not path.exists():
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"can not read config file {path}: {exc}") from exc
        try:
            return cls.model_validate_json(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"can not deserialize config file {path}: {exc}") from exc

    def save(self, path: Path) -> None:
        """Write the config file, readable by the owner only."""
        try:
            path.write_text(self.model_dump_json(indent=2) + "\n", encoding="utf-8")
            os.chmod(path, 0o600)
        except OSError as exc:
            raise ConfigurationError(f"can not write config file {path}: {exc}") from exc
