"""Configuration module for issuechat."""

from issuechat.config.loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    EnvVarNotFoundError,
    load_config,
)
from issuechat.config.models import (
    AppConfig,
    ConnectionConfig,
    GitHubConfig,
    LoggingConfig,
    ServerConfig,
    SyncConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "EnvVarNotFoundError",
    # Functions
    "load_config",
    # Models
    "AppConfig",
    "ConnectionConfig",
    "GitHubConfig",
    "LoggingConfig",
    "ServerConfig",
    "SyncConfig",
]
