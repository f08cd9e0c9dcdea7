# app/models/recurring_meeting_template.py
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


class RecurringMeetingTemplate(Base):
    """
    Declarative definition of a recurring meeting.

    Templates are authored outside of the materializer; the scheduler only
    reads them and stamps `last_materialized_at` after each pass.
    """

    __tablename__ = "recurring_meeting_templates"

    id = Column(String(36), primary_key=True, default=_new_id)

    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)

    meeting_type = Column(String(16), nullable=False, default="offline")
    location = Column(String(500), nullable=True)
    meeting_link = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    client_id = Column(String(64), nullable=True)
    lead_id = Column(String(64), nullable=True)

    creator = Column(String(64), nullable=False, index=True)

    recurrence_pattern = Column(String(16), nullable=False, index=True)
    # Sunday=0 ... Saturday=6
    day_of_week = Column(Integer, nullable=True)
    day_of_month = Column(Integer, nullable=True)

    # Wall-clock "HH:MM", timezone-naive
    start_clock_time = Column(String(5), nullable=False)
    end_clock_time = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=True)

    window_end_date = Column(Date, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)

    last_materialized_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.now,
        onupdate=datetime.now,
    )

    participant_links = relationship(
        "RecurringMeetingTemplateParticipant",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="RecurringMeetingTemplateParticipant.user_id",
    )
    participants = association_proxy(
        "participant_links",
        "user_id",
        creator=lambda user_id: RecurringMeetingTemplateParticipant(user_id=user_id),
    )

    __table_args__ = (
        Index(
            "ix_recurring_meeting_templates_active",
            "is_active",
            "is_deleted",
            "recurrence_pattern",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<RecurringMeetingTemplate id={self.id} title={self.title!r} "
            f"pattern={self.recurrence_pattern} active={self.is_active}>"
        )


class RecurringMeetingTemplateParticipant(Base):
    """
    Link row between a template and one participating user.
    """

    __tablename__ = "recurring_meeting_template_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(
        String(36),
        ForeignKey("recurring_meeting_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(String(64), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint(
            "template_id",
            "user_id",
            name="uq_recurring_template_participants_template_user",
        ),
    )
