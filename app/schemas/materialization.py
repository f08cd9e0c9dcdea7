# app/schemas/materialization.py
from datetime import date, datetime

from pydantic import BaseModel, Field


class MaterializationResult(BaseModel):
    """
    Outcome of one materializer pass over a single template.
    """

    template_id: str = Field(..., description="Template that was processed.")
    created: int = Field(0, description="Meetings created in this pass.", examples=[2])
    skipped: int = Field(
        0,
        description=(
            "Candidate dates that did not produce a meeting "
            "(already_materialized + conflicts + failed)."
        ),
        examples=[1],
    )
    already_materialized: int = Field(
        0,
        description="Dates skipped because the template already produced a meeting for them.",
    )
    conflicts: int = Field(
        0,
        description="Dates skipped because a participant was already booked.",
    )
    failed: int = Field(
        0,
        description="Dates skipped because of a store or unexpected error; retried next cycle.",
    )
    stopped: bool = Field(
        False,
        description="True if a stop signal ended the pass before all dates were processed.",
    )
    error: str | None = Field(
        None,
        description="Configuration error that prevented the template from being expanded.",
    )


class CycleSummary(BaseModel):
    """
    Summary payload returned by a full materialization cycle.
    """

    reference_date: date = Field(
        ...,
        description="Calendar date the lookahead window starts from.",
        examples=["2025-11-17"],
    )
    lookahead_days: int = Field(..., examples=[14])
    started_at: datetime = Field(..., description="Naive local start of the cycle.")
    finished_at: datetime = Field(..., description="Naive local end of the cycle.")
    templates_processed: int = Field(
        0,
        description="Number of active templates handed to the materializer.",
        examples=[3],
    )
    created: int = Field(0, description="Meetings created across all templates.")
    skipped: int = Field(0, description="Candidate dates skipped across all templates.")
    template_errors: int = Field(
        0,
        description="Templates that could not be expanded due to configuration errors.",
    )
    stopped: bool = Field(False, description="True if the cycle ended on a stop signal.")
    results: list[MaterializationResult] = Field(
        default_factory=list,
        description="Per-template results for this cycle.",
    )


class SchedulerStatus(BaseModel):
    """
    Snapshot of the background scheduler state.
    """

    enabled: bool = Field(..., description="Whether the scheduler is configured to run.")
    running: bool = Field(..., description="True while a materialization cycle is in progress.")
    next_run_time: datetime | None = Field(
        None,
        description="Next time the daily trigger fires, if scheduled.",
    )
    last_cycle: CycleSummary | None = Field(
        None,
        description="Summary of the most recently finished cycle.",
    )
