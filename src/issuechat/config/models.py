"""Pydantic models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from issuechat.domain.entities.repository import LabelTaxonomy, RepositoryConfig


class SyncConfig(BaseModel):
    """Repository sync configuration."""

    repository: str = Field(
        ...,
        description="Repository to sync, in 'owner/name' form.",
    )
    sync_interval_seconds: int = Field(
        default=30,
        gt=0,
        description="Delay in seconds between two automatic syncs.",
    )
    auto_sync: bool = Field(
        default=True,
        description="Whether to poll the repository periodically.",
    )
    api_key: str | None = Field(
        default=None,
        description=(
            "GitHub token used for API calls. Without it only public "
            "repositories can be read and nothing can be written."
        ),
    )

    @field_validator("repository")
    @classmethod
    def _check_slug(cls, value: str) -> str:
        RepositoryConfig.from_slug(value)
        return value.strip()

    @field_validator("api_key")
    @classmethod
    def _blank_key_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class GitHubConfig(BaseModel):
    """GitHub API client configuration."""

    api_base_url: str = "https://api.github.com"
    page_size: int = Field(default=50, gt=0, le=100)
    timeout: float = Field(
        default=10.0,
        gt=0,
        description="Total timeout in seconds for a single API request.",
    )


class ConnectionConfig(BaseModel):
    """Connection supervision configuration."""

    heartbeat_interval: float = Field(default=30.0, gt=0)
    health_window: float = Field(
        default=60.0,
        gt=0,
        description="Maximum heartbeat age in seconds for a healthy connection.",
    )
    backoff_base: float = Field(
        default=1.0,
        gt=0,
        description="Reconnect delay in seconds after the first failure.",
    )
    backoff_cap: float = Field(
        default=30.0,
        gt=0,
        description="Maximum reconnect delay in seconds.",
    )


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"


class AppConfig(BaseModel):
    """Application configuration."""

    sync: SyncConfig
    labels: LabelTaxonomy = Field(default_factory=LabelTaxonomy)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def repository_config(self) -> RepositoryConfig:
        """Return the repository to sync with the configured label taxonomy."""
        return RepositoryConfig.from_slug(self.sync.repository, self.labels)
