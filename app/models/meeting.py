# app/models/meeting.py
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import relationship

from app.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Meeting(Base):
    """
    A concrete, schedulable meeting.

    Rows are created either by the materializer (with `origin_template_id`
    and `occurrence_date` set) or by users directly (ad hoc meetings, both
    columns null). Start/end are naive local timestamps.
    """

    __tablename__ = "meetings"

    id = Column(String(36), primary_key=True, default=_new_id)

    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)

    meeting_type = Column(String(16), nullable=False, default="offline")
    location = Column(String(500), nullable=True)
    meeting_link = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    client_id = Column(String(64), nullable=True, index=True)
    lead_id = Column(String(64), nullable=True, index=True)

    creator = Column(String(64), nullable=False, index=True)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    status = Column(String(16), nullable=False, default="scheduled", index=True)
    recurrence_pattern = Column(String(16), nullable=False, default="once")

    origin_template_id = Column(
        String(36),
        ForeignKey("recurring_meeting_templates.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    occurrence_date = Column(Date, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False, index=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.now,
        onupdate=datetime.now,
    )

    participant_links = relationship(
        "MeetingParticipant",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MeetingParticipant.user_id",
    )
    participants = association_proxy(
        "participant_links",
        "user_id",
        creator=lambda user_id: MeetingParticipant(user_id=user_id),
    )

    __table_args__ = (
        Index("ix_meetings_start_end_deleted", "start_time", "end_time", "is_deleted"),
    )

    def __repr__(self) -> str:
        return (
            f"<Meeting id={self.id} title={self.title!r} start={self.start_time} "
            f"status={self.status} template={self.origin_template_id}>"
        )


class MeetingParticipant(Base):
    """
    Link row between a meeting and one participating user.
    """

    __tablename__ = "meeting_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    meeting_id = Column(
        String(36),
        ForeignKey("meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(64), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint(
            "meeting_id",
            "user_id",
            name="uq_meeting_participants_meeting_user",
        ),
    )


# At most one live instance per (template, calendar date). Soft-deleted rows
# are excluded so a deleted occurrence can be generated again.
OCCURRENCE_INDEX_NAME = "uq_meetings_template_occurrence_live"

Index(
    OCCURRENCE_INDEX_NAME,
    Meeting.origin_template_id,
    Meeting.occurrence_date,
    unique=True,
    sqlite_where=Meeting.is_deleted.is_(False),
    postgresql_where=Meeting.is_deleted.is_(False),
)
