"""Configuration loader with environment variable expansion."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from issuechat.config.models import AppConfig

# Matches a whole value of the form ${VAR_NAME} or ${VAR_NAME:-default}
ENV_VAR_PATTERN = re.compile(
    r"^\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}$"
)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigFileNotFoundError(ConfigError):
    """Raised when the configuration file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the YAML file cannot be parsed."""


class EnvVarNotFoundError(ConfigError):
    """Raised when an environment variable without default is not set."""


def _expand_value(value: str) -> str:
    match = ENV_VAR_PATTERN.match(value)
    if not match:
        return value

    name = match.group("name")
    resolved = os.environ.get(name)
    if resolved is not None:
        return resolved
    default = match.group("default")
    if default is not None:
        return default
    raise EnvVarNotFoundError(f"Environment variable '{name}' not found")


def expand_env_vars(data: Any) -> Any:
    """Expand environment variables in the configuration data.

    Only complete string values are expanded, so "prefix${VAR}" stays as is.
    `${VAR:-default}` falls back to `default` when VAR is unset.

    Args:
        data: Configuration data (dict, list, or scalar value).

    Returns:
        Data with environment variables expanded.

    Raises:
        EnvVarNotFoundError: If a variable without default is not defined.
    """
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    if isinstance(data, str):
        return _expand_value(data)
    return data


def load_config(path: Path) -> AppConfig:
    """Load and validate configuration from a YAML file.

    A `.env` file in the same directory is loaded into the environment
    first.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated AppConfig instance.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
        ConfigParseError: If the YAML cannot be parsed or is not a mapping.
        EnvVarNotFoundError: If an environment variable is not defined.
        ValidationError: If the configuration fails Pydantic validation.
    """
    if not path.is_file():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    # Variables already in the environment take precedence
    load_dotenv(path.parent / ".env", override=False)

    try:
        with open(path, encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}") from e

    if raw_data is None:
        raw_data = {}
    if not isinstance(raw_data, dict):
        raise ConfigParseError("Configuration root must be a mapping")

    return AppConfig.model_validate(expand_env_vars(raw_data))
