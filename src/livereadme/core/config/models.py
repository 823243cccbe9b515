"""
Pydantic configuration models for livereadme.

These models provide type-safe configuration with validation for:
- GitHub API access
- Caching, retry and throttling policy
- Profile page content
- Output and logging
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


DEFAULT_USERNAME = "wicked-eyes-on-you"


# =============================================================================
# API Configuration
# =============================================================================


class ApiConfig(BaseModel):
    """GitHub REST API access settings."""

    base_url: str = Field(
        default="https://api.github.com",
        description="REST API root URL",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout",
    )
    accept: str = Field(
        default="application/vnd.github.v3+json",
        description="Versioned media type sent in the Accept header",
    )
    user_agent: str | None = Field(
        default=None,
        description="Custom User-Agent (default: livereadme/<version>)",
    )


class CacheConfig(BaseModel):
    """Response cache settings."""

    ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Validity window of a cached response",
    )


class RetrySettings(BaseModel):
    """Retry policy for retryable fetch failures."""

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Maximum attempts per logical fetch",
    )
    base_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay before the first retry (doubles each attempt)",
    )
    max_delay_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single backoff delay",
    )


class ThrottleSettings(BaseModel):
    """Request dispatch settings."""

    max_concurrency: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Maximum simultaneous in-flight requests",
    )
    low_quota_threshold: int = Field(
        default=50,
        ge=0,
        description="Remaining quota below which dispatch is throttled",
    )
    max_backpressure_wait_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Longest single throttling delay",
    )


# =============================================================================
# Profile Configuration
# =============================================================================


class ProfileConfig(BaseModel):
    """Static profile content rendered around the live data."""

    role: str = Field(default="Developer · Student · Builder")
    focus: str = Field(default="Web Development, AI, Open Source")
    motto: str = Field(default="Code is poetry, every commit tells a story")
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used for timestamps",
    )
    tech_stack: dict[str, str] = Field(
        default_factory=lambda: {
            "Frontend": "React.js, HTML5, CSS3, JavaScript",
            "Backend": "Node.js, Express",
            "Database": "MongoDB, MySQL",
            "Tools": "VS Code, Git, GitHub, Postman",
        },
        description="Label -> comma separated technologies",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


class OutputConfig(BaseModel):
    """Generated artifact locations."""

    path: Path = Field(
        default=Path("README.md"),
        description="Markdown document to (over)write",
    )
    health_report: Path = Field(
        default=Path(".health-report.json"),
        description="Health check JSON report",
    )


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for file logs",
    )
    rich_console: bool = Field(
        default=True,
        description="Use Rich for console output",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


# =============================================================================
# Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """Root application configuration.

    This is the main configuration object loaded from app.yaml.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    throttle: ThrottleSettings = Field(default_factory=ThrottleSettings)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Credentials(BaseModel):
    """Values read from the process environment."""

    token: str = Field(..., min_length=1)
    username: str = Field(default=DEFAULT_USERNAME, min_length=1)
