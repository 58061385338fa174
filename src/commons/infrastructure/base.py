"""Shared types for infrastructure providers."""

from dataclasses import dataclass


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None
