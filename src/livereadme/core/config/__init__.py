"""Configuration loading and validation."""

from .models import (
    DEFAULT_USERNAME,
    # Config models
    ApiConfig,
    AppConfig,
    CacheConfig,
    Credentials,
    LoggingConfig,
    OutputConfig,
    ProfileConfig,
    RetrySettings,
    ThrottleSettings,
)
from .loader import ConfigError, ConfigurationMissing, load_app_config, load_credentials

__all__ = [
    "DEFAULT_USERNAME",
    # Config models
    "ApiConfig",
    "AppConfig",
    "CacheConfig",
    "Credentials",
    "LoggingConfig",
    "OutputConfig",
    "ProfileConfig",
    "RetrySettings",
    "ThrottleSettings",
    # Loaders
    "ConfigError",
    "ConfigurationMissing",
    "load_app_config",
    "load_credentials",
]
