# app/models/meeting_activity.py
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from app.db.base import Base


class MeetingActivity(Base):
    """
    Append-only audit trail entry for a meeting.

    The materializer writes exactly one `CREATED` entry per generated meeting.
    """

    __tablename__ = "meeting_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)

    meeting_id = Column(
        String(36),
        ForeignKey("meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action = Column(String(32), nullable=False, index=True)
    detail = Column(Text, nullable=True)
    actor = Column(String(64), nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.now)

    __table_args__ = (
        Index("ix_meeting_activities_meeting_created", "meeting_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<MeetingActivity id={self.id} meeting_id={self.meeting_id} "
            f"action={self.action}>"
        )
