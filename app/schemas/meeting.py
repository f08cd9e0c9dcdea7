# app/schemas/meeting.py
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class MeetingStatus(str, Enum):
    """
    Lifecycle states of a concrete meeting.
    """

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class MeetingActivityAction(str, Enum):
    """
    Audit actions written by this service.
    """

    CREATED = "CREATED"


class MeetingRead(BaseModel):
    """
    Public representation of a meeting instance.
    """

    id: str = Field(..., description="Opaque meeting identifier.")
    title: str
    description: str | None = None
    meeting_type: str
    location: str | None = None
    meeting_link: str | None = None
    notes: str | None = None
    client_id: str | None = None
    lead_id: str | None = None
    participants: list[str] = Field(default_factory=list)
    creator: str
    start_time: datetime = Field(..., description="Naive local start timestamp.")
    end_time: datetime = Field(..., description="Naive local end timestamp.")
    status: MeetingStatus
    recurrence_pattern: str
    origin_template_id: str | None = Field(
        None,
        description="Template that generated this meeting, null for ad hoc meetings.",
    )
    occurrence_date: date | None = None
    is_deleted: bool = False

    class Config:
        from_attributes = True

    @field_validator("participants", mode="before")
    @classmethod
    def _coerce_participants(cls, value):
        if value is None:
            return []
        return list(value)
