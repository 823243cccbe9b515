"""Health checks run before README generation."""

from .checks import HealthCheckResult, HealthReport, run_health_check

__all__ = [
    "HealthCheckResult",
    "HealthReport",
    "run_health_check",
]
