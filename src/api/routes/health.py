"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Response, status

from src.api.middleware.latency_logging import get_latency_stats
from src.core.stripe import check_stripe_configuration
from src.core.supabase import check_database_connection
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status without touching dependencies."""
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check if all dependencies are available. Used for readiness probes.",
)
async def readiness_check(response: Response) -> ReadinessResponse:
    """Check readiness of all dependencies.

    Verifies that the service can handle requests by checking:
    - Database connectivity (Supabase)
    - Stripe keys needed for checkout and webhooks

    Returns 503 if any dependency is unhealthy.

    Args:
        response: FastAPI response object for setting status code.

    Returns:
        ReadinessResponse: Status of all dependency checks.
    """
    checks: list[CheckResult] = []

    for name, check in (("database", check_database_connection), ("stripe", check_stripe_configuration)):
        start_time = time.perf_counter()
        result = await check()
        latency_ms = (time.perf_counter() - start_time) * 1000
        checks.append(
            CheckResult(
                name=name,
                healthy=result["healthy"],
                latency_ms=round(latency_ms, 2),
                error=result.get("error"),
            )
        )

    all_healthy = all(check.healthy for check in checks)
    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status=HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY,
        checks=checks,
    )


@router.get(
    "/health/latency",
    summary="Request latency stats",
    description="Aggregated request latencies recorded by the latency middleware.",
)
async def latency_stats() -> dict:
    stats = get_latency_stats()
    return {"overall": stats.get_stats(), "by_path": stats.get_stats_by_path()}
