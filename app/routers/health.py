# =============================================================================
# app/routers/health.py - Health Check Endpoint
# =============================================================================
# Provides the health check used by monitoring and load balancers.
# It never touches the database: it reports that the process is serving.
# =============================================================================

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    message: str
    timestamp: str


def utc_timestamp(now: datetime | None = None) -> str:
    """Format a time as ISO-8601 UTC with milliseconds, e.g. 2024-01-15T10:30:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# Endpoints
# =============================================================================

@router.get("", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns a fixed payload regardless of database or downstream health.
    """
    return HealthResponse(
        status="OK",
        message="Server is running",
        timestamp=utc_timestamp(),
    )
