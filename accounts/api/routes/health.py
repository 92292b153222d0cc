"""Health check endpoints for monitoring and deployment verification."""

import time

from fastapi import APIRouter, Request, Response, status

from accounts.core.cassandra import check_database_connection
from accounts.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse
from accounts.services.profile_cache import check_cache_connection

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status without checking dependencies."""
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "All dependencies healthy"},
        503: {"description": "One or more dependencies unhealthy"},
    },
    summary="Readiness check",
    description="Check if Cassandra and the profile cache are available. Used for readiness probes.",
)
async def readiness_check(request: Request, response: Response) -> ReadinessResponse:
    """Check readiness of the profile store and the cache.

    Returns 503 if any dependency is unhealthy.
    """
    checks: list[CheckResult] = []

    start_time = time.perf_counter()
    db_result = await check_database_connection(request.app.state.cassandra.session)
    latency_ms = (time.perf_counter() - start_time) * 1000

    checks.append(
        CheckResult(
            name="cassandra",
            healthy=db_result["healthy"],
            latency_ms=round(latency_ms, 2),
            error=db_result.get("error"),
        )
    )

    start_time = time.perf_counter()
    cache_result = await check_cache_connection(request.app.state.profile_cache)
    latency_ms = (time.perf_counter() - start_time) * 1000

    checks.append(
        CheckResult(
            name="cache",
            healthy=cache_result["healthy"],
            latency_ms=round(latency_ms, 2),
            error=cache_result.get("error"),
        )
    )

    all_healthy = all(check.healthy for check in checks)
    overall_status = HealthStatus.HEALTHY if all_healthy else HealthStatus.UNHEALTHY

    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(status=overall_status, checks=checks)
