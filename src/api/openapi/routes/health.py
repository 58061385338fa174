"""Health check endpoints."""

from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import FactoryDep, SettingsDep
from src.commons.infrastructure.base import HealthStatus as HealthResult
from src.infrastructure.factory import InfrastructureFactory

router = APIRouter()

# The cache is advisory: losing it degrades the service but does not stop it.
_CRITICAL_COMPONENTS = frozenset({"document_db", "streaming"})


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    latency_ms: float | None = Field(default=None, description="Health check latency")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(description="Whether the service is ready to accept requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


async def _check_components(factory: InfrastructureFactory) -> dict[str, HealthResult]:
    getters = {
        "document_db": factory.get_document_db,
        "cache": factory.get_cache,
        "streaming": factory.get_streaming_provider,
    }
    results: dict[str, HealthResult] = {}
    for name, getter in getters.items():
        try:
            results[name] = await getter().health_check()
        except Exception as e:
            results[name] = HealthResult(healthy=False, latency_ms=0.0, message=str(e))
    return results


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Get overall health status of the service and its components.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of all service components."""
    results = await _check_components(factory)

    components = [
        ComponentHealth(
            name=name,
            status=HealthStatus.HEALTHY if result.healthy else HealthStatus.UNHEALTHY,
            latency_ms=round(result.latency_ms, 2),
            message=result.message,
        )
        for name, result in results.items()
    ]

    failed = {name for name, result in results.items() if not result.healthy}
    if failed & _CRITICAL_COMPONENTS:
        overall_status = HealthStatus.UNHEALTHY
    elif failed:
        overall_status = HealthStatus.DEGRADED
    else:
        overall_status = HealthStatus.HEALTHY

    return HealthResponse(
        status=overall_status,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness check",
    description="Simple liveness check for Kubernetes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Readiness check for Kubernetes.",
)
async def readiness(
    factory: FactoryDep,
) -> ReadinessResponse:
    """Check if service is ready to accept requests.

    Only the document database and the provider gate readiness.
    """
    results = await _check_components(factory)
    checks = {name: result.healthy for name, result in results.items()}
    ready = all(checks[name] for name in _CRITICAL_COMPONENTS)
    return ReadinessResponse(ready=ready, checks=checks)
