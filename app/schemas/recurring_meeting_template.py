# app/schemas/recurring_meeting_template.py
from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class RecurrencePattern(str, Enum):
    """
    Supported recurrence cadences for a template.
    """

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class MeetingType(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


class RecurringMeetingTemplateRead(BaseModel):
    """
    Detached, read-only view of a recurring meeting template.

    The materializer works on this snapshot instead of the ORM row so that
    a rollback inside a pass never triggers lazy reloads of the template.

    Pattern-specific fields are deliberately loose here (plain str/int);
    they are validated when the recurrence rule is built, so a malformed row
    surfaces as a configuration error for that template only.
    """

    id: str = Field(..., description="Opaque template identifier.")
    title: str = Field(..., examples=["Weekly sync"])
    description: str | None = None
    meeting_type: str = Field(MeetingType.OFFLINE.value, examples=["online"])
    location: str | None = None
    meeting_link: str | None = None
    notes: str | None = None
    client_id: str | None = None
    lead_id: str | None = None

    participants: list[str] = Field(
        default_factory=list,
        description="User identifiers attending every generated meeting.",
    )
    creator: str = Field(..., description="User who authored the template.")

    recurrence_pattern: str = Field(..., examples=["weekly"])
    day_of_week: int | None = Field(
        None,
        description="Weekday for weekly templates, Sunday=0 ... Saturday=6.",
    )
    day_of_month: int | None = Field(
        None,
        description="Calendar day for monthly templates (1-31).",
    )
    start_clock_time: str = Field(..., examples=["10:00"])
    end_clock_time: str = Field(..., examples=["10:30"])
    duration_minutes: int | None = None

    window_end_date: date | None = Field(
        None,
        description="Inclusive last date on which instances may be generated.",
    )
    is_active: bool = True
    is_deleted: bool = False
    last_materialized_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_validator("participants", mode="before")
    @classmethod
    def _coerce_participants(cls, value):
        # ORM rows expose participants through an association proxy
        if value is None:
            return []
        return list(value)
