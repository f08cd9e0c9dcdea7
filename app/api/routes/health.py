# app/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(
        ...,
        description="Overall health status of the service.",
        examples=["ok"],
    )
    app_name: str = Field(
        ...,
        description="Human-friendly name of the running application.",
        examples=["Recurring Meeting Materializer"],
    )
    environment: str = Field(
        ...,
        description="Current deployment environment (local/dev/stage/prod).",
        examples=["local"],
    )
    scheduler_started: bool = Field(
        ...,
        description="Whether the background materialization timer is active in this process.",
        examples=[True],
    )
    timestamp_utc: datetime = Field(
        ...,
        description="Server-side timestamp (UTC) at which this health check was generated.",
        examples=["2025-01-01T10:30:00Z"],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check for the Recurring Meeting Materializer service",
    description=(
        "Lightweight endpoint to verify that the service is up and responding.\n\n"
        "Typical use-cases:\n"
        "- Kubernetes / Docker / VM health probes\n"
        "- Uptime monitoring & alerting\n"
        "- Checking that the background scheduler was started\n"
    ),
)
async def health_check(request: Request) -> HealthResponse:
    """
    Returns the current health status of the service.

    This endpoint does **not** touch the database so that it remains reliable
    even when downstream components are degraded.
    """
    settings = get_settings()
    scheduler = getattr(request.app.state, "materialization_scheduler", None)
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        scheduler_started=bool(scheduler is not None and scheduler.is_started),
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
