"""Tests for config Pydantic models."""

import pytest
from pydantic import ValidationError

from issuechat.config.models import (
    AppConfig,
    ConnectionConfig,
    GitHubConfig,
    LoggingConfig,
    ServerConfig,
    SyncConfig,
)


class TestSyncConfig:
    """Tests for SyncConfig model."""

    def test_minimal_config(self) -> None:
        config = SyncConfig(repository="acme/chat")

        assert config.repository == "acme/chat"
        assert config.sync_interval_seconds == 30
        assert config.auto_sync is True
        assert config.api_key is None

    def test_repository_is_stripped(self) -> None:
        assert SyncConfig(repository=" acme/chat ").repository == "acme/chat"

    @pytest.mark.parametrize("repository", ["", "acme", "acme/chat/extra"])
    def test_malformed_repository(self, repository: str) -> None:
        with pytest.raises(ValidationError):
            SyncConfig(repository=repository)

    def test_missing_repository(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SyncConfig()  # type: ignore[call-arg]

        errors = exc_info.value.errors()
        assert errors[0]["loc"] == ("repository",)
        assert errors[0]["type"] == "missing"

    @pytest.mark.parametrize("interval", [0, -5])
    def test_interval_must_be_positive(self, interval: int) -> None:
        with pytest.raises(ValidationError):
            SyncConfig(repository="acme/chat", sync_interval_seconds=interval)

    @pytest.mark.parametrize("api_key", ["", "   "])
    def test_blank_api_key_is_none(self, api_key: str) -> None:
        assert SyncConfig(repository="acme/chat", api_key=api_key).api_key is None


class TestGitHubConfig:
    """Tests for GitHubConfig model."""

    def test_defaults(self) -> None:
        config = GitHubConfig()

        assert config.api_base_url == "https://api.github.com"
        assert config.page_size == 50
        assert config.timeout == 10.0

    @pytest.mark.parametrize("page_size", [0, 101])
    def test_page_size_bounds(self, page_size: int) -> None:
        with pytest.raises(ValidationError):
            GitHubConfig(page_size=page_size)


class TestConnectionConfig:
    """Tests for ConnectionConfig model."""

    def test_defaults(self) -> None:
        config = ConnectionConfig()

        assert config.heartbeat_interval == 30.0
        assert config.health_window == 60.0
        assert config.backoff_base == 1.0
        assert config.backoff_cap == 30.0

    def test_backoff_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionConfig(backoff_base=0)


class TestServerConfig:
    """Tests for ServerConfig model."""

    def test_default_values(self) -> None:
        config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.port == 8080


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_default_values(self) -> None:
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.format == "json"

    def test_invalid_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]

    def test_invalid_format(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")  # type: ignore[arg-type]


class TestAppConfig:
    """Tests for AppConfig model."""

    def test_minimal_config(self) -> None:
        config = AppConfig.model_validate({"sync": {"repository": "acme/chat"}})

        assert config.labels.chat == "chat"
        assert config.github == GitHubConfig()
        assert config.connection == ConnectionConfig()
        assert config.server == ServerConfig()
        assert config.logging == LoggingConfig()

    def test_repository_config_uses_label_taxonomy(self) -> None:
        config = AppConfig.model_validate(
            {"sync": {"repository": "acme/chat"}, "labels": {"chat": "talk"}}
        )

        repository = config.repository_config()

        assert repository.owner == "acme"
        assert repository.name == "chat"
        assert repository.labels.chat == "talk"
