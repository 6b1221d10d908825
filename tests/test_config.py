"""Tests for the JSON config file."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from standup.core.config import (
    CalendarSettings,
    Config,
    GitHubSettings,
    GoogleClientSettings,
    GoogleToken,
)
from standup.errors import ConfigurationError


class TestConfig:
    def test_missing_file(self, tmp_path):
        assert Config.load(tmp_path / "missing.json") is None

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "standup.json"
        config = Config(
            github=GitHubSettings(username="alice", token="ghp_x"),
            google_client=GoogleClientSettings(client_id="id", client_secret="secret"),
            google_token=GoogleToken(
                access_token="a",
                refresh_token="r",
                expires_at=datetime(2024, 3, 5, 10, tzinfo=timezone.utc),
            ),
            gcal=CalendarSettings(id="primary"),
        )
        config.save(path)
        assert Config.load(path) == config
        assert path.stat().st_mode & 0o777 == 0o600

    def test_github_only(self, tmp_path):
        path = tmp_path / "standup.json"
        path.write_text('{"github": {"username": "alice", "token": "t"}}')
        config = Config.load(path)
        assert config.github.username == "alice"
        assert config.gcal is None

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "standup.json"
        path.write_text('{"github": {}}')
        with pytest.raises(ConfigurationError):
            Config.load(path)

    def test_not_json(self, tmp_path):
        path = tmp_path / "standup.json"
        path.write_text("github = alice")
        with pytest.raises(ConfigurationError):
            Config.load(path)

    def test_naive_expiry_is_utc(self):
        token = GoogleToken(
            access_token="a", refresh_token="r", expires_at=datetime(2024, 3, 5, 10)
        )
        assert token.expires_at.tzinfo is timezone.utc
