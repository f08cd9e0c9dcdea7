# app/api/routes/internal.py
from datetime import date as date_type
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.dependencies.internal_auth import verify_internal_api_key
from app.schemas.materialization import CycleSummary, SchedulerStatus
from app.services.scheduler import MaterializationScheduler

router = APIRouter(
    prefix="/internal",
    tags=["Internal"],
    dependencies=[Depends(verify_internal_api_key)],
)


def get_materialization_scheduler(request: Request) -> MaterializationScheduler:
    return request.app.state.materialization_scheduler


@router.post(
    "/run-materialization",
    response_model=CycleSummary,
    status_code=HTTPStatus.OK,
    summary="Materialize recurring meetings for all active templates",
    description=(
        "Runs one materialization cycle immediately: every active recurring "
        "template is expanded over the lookahead window and missing, "
        "conflict-free meetings are created.\n\n"
        "The cycle is idempotent; calling this endpoint repeatedly never "
        "duplicates a meeting.\n\n"
        "Protected via the `X-Internal-Api-Key` header when configured."
    ),
    responses={
        200: {
            "description": "Cycle executed successfully. A summary is returned.",
            "content": {
                "application/json": {
                    "example": {
                        "reference_date": "2025-11-17",
                        "lookahead_days": 14,
                        "started_at": "2025-11-17T00:05:00",
                        "finished_at": "2025-11-17T00:05:01",
                        "templates_processed": 1,
                        "created": 2,
                        "skipped": 1,
                        "template_errors": 0,
                        "stopped": False,
                        "results": [
                            {
                                "template_id": "5b0c2a4e-8f1e-4e53-9a43-0d1b1e7c2f10",
                                "created": 2,
                                "skipped": 1,
                                "already_materialized": 1,
                                "conflicts": 0,
                                "failed": 0,
                                "stopped": False,
                                "error": None,
                            }
                        ],
                    }
                }
            },
        },
        401: {"description": "Missing or invalid internal API key (if configured)."},
        409: {"description": "A materialization cycle is already running."},
    },
)
async def trigger_materialization(
    reference_date: date_type | None = Query(
        default=None,
        description=(
            "First calendar date of the lookahead window. "
            "If omitted, the server's current local date is used."
        ),
        examples=["2025-11-17"],
    ),
    lookahead_days: int | None = Query(
        default=None,
        ge=0,
        description="Window size in days. Defaults to MATERIALIZATION_LOOKAHEAD_DAYS.",
    ),
    scheduler: MaterializationScheduler = Depends(get_materialization_scheduler),
) -> CycleSummary:
    summary = await scheduler.run_once(
        reference_date=reference_date,
        lookahead_days=lookahead_days,
    )
    if summary is None:
        raise HTTPException(
            status_code=HTTPStatus.CONFLICT,
            detail="A materialization cycle is already running.",
        )
    return summary


@router.get(
    "/scheduler",
    response_model=SchedulerStatus,
    summary="Inspect the background materialization scheduler",
)
async def scheduler_status(
    scheduler: MaterializationScheduler = Depends(get_materialization_scheduler),
) -> SchedulerStatus:
    """
    Report whether a cycle is running, when the daily trigger fires next and
    the outcome of the last finished cycle.
    """
    return scheduler.status()
