"""
Configuration loader for YAML files and the process environment.

Loads and validates configuration from YAML into Pydantic models, and
reads the GitHub credential from environment variables.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .models import DEFAULT_USERNAME, AppConfig, Credentials

DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

TOKEN_ENV = "GITHUB_TOKEN"
USERNAME_ENV = "GITHUB_USERNAME"

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


class ConfigurationMissing(ConfigError):
    """A required environment value is absent."""

    def __init__(self, variable: str):
        self.variable = variable
        super().__init__(f"{variable} is required")


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dictionary.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", path=path, details=str(e)) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}", path=path, details=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}", path=path)
    return data


def _expand_env_vars(data: Any, env: Mapping[str, str] | None = None) -> Any:
    """Recursively expand ${VAR} and ${VAR:-default} in string values."""
    env = os.environ if env is None else env

    def replacer(match: re.Match[str]) -> str:
        return env.get(match.group(1), match.group(2) or "")

    if isinstance(data, str):
        return _ENV_PATTERN.sub(replacer, data)
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, env) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item, env) for item in data]
    return data


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load application configuration from YAML file.

    Args:
        path: Path to app.yaml (default: configs/app.yaml)
        expand_env: Whether to expand environment variables

    Returns:
        Validated AppConfig instance (defaults when the file is absent)

    Raises:
        ConfigError: If configuration is invalid
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)

    if not path.exists():
        return AppConfig()

    data = _load_yaml_file(path)

    if expand_env:
        data = _expand_env_vars(data)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid app configuration in {path}",
            path=path,
            details=str(e),
        ) from e


def load_credentials(
    env: Mapping[str, str] | None = None,
    username: str | None = None,
) -> Credentials:
    """Read the GitHub credential and target account from the environment.

    Args:
        env: Environment mapping (default: os.environ)
        username: Explicit account, overriding GITHUB_USERNAME

    Raises:
        ConfigurationMissing: If GITHUB_TOKEN is unset or empty
    """
    env = os.environ if env is None else env

    token = (env.get(TOKEN_ENV) or "").strip()
    if not token:
        raise ConfigurationMissing(TOKEN_ENV)

    username = username or (env.get(USERNAME_ENV) or "").strip() or DEFAULT_USERNAME
    return Credentials(token=token, username=username)
