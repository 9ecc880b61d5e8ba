# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# =============================================================================

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

from app.dependencies import DatabaseDep, SettingsDep
from app.exceptions import DatabasePingError

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class ChecksResponse(BaseModel):
    """Individual service checks."""
    database: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    environment: str
    version: str
    checks: ChecksResponse


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check(settings: SettingsDep, database: DatabaseDep):
    """
    Health check endpoint.

    Pings the database. Always answers 200; `status` is "degraded"
    when the database cannot be reached.
    """
    checks = ChecksResponse(database="not_configured")

    if database is not None:
        try:
            await database.ping()
            checks.database = "healthy"
        except DatabasePingError as e:
            checks.database = f"unhealthy: {e.details.get('error', '')[:50]}"

    return HealthResponse(
        status="healthy" if checks.database == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.NODE_ENV,
        version="1.0.0",
        checks=checks,
    )
