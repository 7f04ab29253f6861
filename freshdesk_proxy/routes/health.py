"""
Health check endpoints

Provides two endpoints:
- GET /api/v1/health - Basic health check
- GET /api/v1/health/dependencies - Freshdesk reachability check
"""
import time
from datetime import datetime, timezone
from typing import Dict, Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
import httpx

from freshdesk_proxy import __version__
from freshdesk_proxy.config import FreshdeskConfig
from freshdesk_proxy.dependencies import get_freshdesk_config
from freshdesk_proxy.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/health", tags=["health"])

# Application start time for uptime calculation
APP_START_TIME = time.time()

HEALTH_CHECK_TIMEOUT = 5.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")


class DependencyStatus(BaseModel):
    """Status of a single dependency"""
    name: str = Field(..., description="Dependency name")
    status: str = Field(..., description="Status: healthy, degraded, unhealthy")
    latency_ms: Optional[float] = Field(None, description="Response latency in milliseconds")
    error_message: Optional[str] = Field(None, description="Error message if unhealthy")


class DependencyHealth(BaseModel):
    """Dependency health check response"""
    overall_status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    dependencies: Dict[str, DependencyStatus] = Field(..., description="Individual dependency statuses")
    checked_at: datetime = Field(default_factory=_utcnow, description="Check timestamp")


# ============================================================================
# Dependency Check Functions
# ============================================================================

async def check_freshdesk_api(config: FreshdeskConfig) -> DependencyStatus:
    """
    Check Freshdesk API connectivity

    Args:
        config: Freshdesk connection settings

    Returns:
        DependencyStatus with health information
    """
    if not config.api_key or config.base_url.startswith("https:///"):
        return DependencyStatus(
            name="freshdesk_api",
            status="degraded",
            error_message="API credentials not configured"
        )

    try:
        start = time.time()

        async with httpx.AsyncClient(timeout=HEALTH_CHECK_TIMEOUT) as client:
            response = await client.get(
                f"{config.base_url}/ticket_fields",
                auth=(config.api_key, "X")
            )
            response.raise_for_status()

        latency = (time.time() - start) * 1000

        return DependencyStatus(
            name="freshdesk_api",
            status="healthy",
            latency_ms=round(latency, 2)
        )

    except httpx.TimeoutException:
        logger.error("Freshdesk API health check timed out")
        return DependencyStatus(
            name="freshdesk_api",
            status="unhealthy",
            error_message=f"Request timed out after {HEALTH_CHECK_TIMEOUT:g} seconds"
        )
    except httpx.HTTPStatusError as e:
        logger.error(f"Freshdesk API health check failed: {e}")
        return DependencyStatus(
            name="freshdesk_api",
            status="unhealthy",
            error_message=f"HTTP {e.response.status_code}"
        )
    except httpx.HTTPError as e:
        logger.error(f"Freshdesk API health check failed: {e!r}")
        return DependencyStatus(
            name="freshdesk_api",
            status="unhealthy",
            error_message=str(e) or e.__class__.__name__
        )


def determine_overall_status(dependencies: Dict[str, DependencyStatus]) -> str:
    """
    Freshdesk is the only dependency, so its status is the overall status
    """
    statuses = {dep.status for dep in dependencies.values()}
    if "unhealthy" in statuses:
        return "unhealthy"
    if "degraded" in statuses:
        return "degraded"
    return "healthy"


# ============================================================================
# API Endpoints
# ============================================================================

@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns basic application health status and uptime"
)
async def basic_health_check() -> HealthResponse:
    """
    Basic health check endpoint

    Always returns 200 OK. Does not contact Freshdesk.
    """
    uptime = time.time() - APP_START_TIME

    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=round(uptime, 2)
    )


@router.get(
    "/dependencies",
    response_model=DependencyHealth,
    status_code=status.HTTP_200_OK,
    summary="Dependency health check",
    description="Checks Freshdesk reachability and returns detailed status"
)
async def dependency_health_check(
    config: FreshdeskConfig = Depends(get_freshdesk_config)
) -> DependencyHealth:
    """
    Dependency health check endpoint

    Always returns 200 OK with detailed status information.
    """
    logger.info("Performing dependency health checks")
    dependencies = {"freshdesk_api": await check_freshdesk_api(config)}
    overall_status = determine_overall_status(dependencies)

    if overall_status == "unhealthy":
        logger.warning("Unhealthy dependencies: freshdesk_api")

    return DependencyHealth(
        overall_status=overall_status,
        dependencies=dependencies
    )
