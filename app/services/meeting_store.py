# app/services/meeting_store.py
from __future__ import annotations

from collections.abc import Iterable
from datetime import date as date_type, datetime, time, timedelta

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.meeting import OCCURRENCE_INDEX_NAME, Meeting, MeetingParticipant
from app.schemas.meeting import MeetingStatus
from app.services.store_errors import DuplicateOccurrenceError, guarded_store_call

# SQLite names the columns of a violated unique index, PostgreSQL names the index.
SQLITE_OCCURRENCE_VIOLATION = (
    "UNIQUE constraint failed: meetings.origin_template_id, meetings.occurrence_date"
)


def is_occurrence_violation(exc: IntegrityError) -> bool:
    """
    True if `exc` was raised by the live (template, occurrence date) index,
    as opposed to any other integrity failure (e.g. a foreign key).
    """
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return OCCURRENCE_INDEX_NAME in message or SQLITE_OCCURRENCE_VIOLATION in message


class MeetingStore:
    """
    Query/insert access to concrete meetings used by the materializer.

    `create` only flushes; committing the meeting together with its audit
    entry is left to the caller so both land in one transaction.
    """

    def __init__(self, db: AsyncSession, timeout_seconds: float | None = None) -> None:
        self.db = db
        self.timeout_seconds = timeout_seconds or get_settings().STORE_TIMEOUT_SECONDS

    async def find_by_template_and_date(
        self,
        template_id: str,
        day: date_type,
    ) -> Meeting | None:
        """
        Return the live (non-deleted) meeting generated by `template_id` for
        the given calendar date, whatever its status.

        A meeting matches either by its recorded occurrence date or by a
        start time falling on that date.
        """
        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)

        stmt = (
            select(Meeting)
            .where(
                Meeting.origin_template_id == template_id,
                Meeting.is_deleted.is_(False),
                or_(
                    Meeting.occurrence_date == day,
                    and_(
                        Meeting.start_time >= day_start,
                        Meeting.start_time < day_end,
                    ),
                ),
            )
            .limit(1)
        )

        async def _query() -> Meeting | None:
            result = await self.db.execute(stmt)
            return result.scalars().first()

        return await guarded_store_call(
            _query(),
            timeout_seconds=self.timeout_seconds,
            operation=f"find meeting for template {template_id} on {day.isoformat()}",
        )

    async def find_overlapping(
        self,
        participants: Iterable[str],
        start_time: datetime,
        end_time: datetime,
    ) -> list[Meeting]:
        """
        Return live, non-cancelled meetings that share at least one
        participant and overlap the half-open range [start_time, end_time).

        Back-to-back meetings (one ends exactly when the other starts) do not
        overlap.
        """
        user_ids = sorted(set(participants))
        if not user_ids:
            return []

        stmt = (
            select(Meeting)
            .where(
                Meeting.is_deleted.is_(False),
                Meeting.status != MeetingStatus.CANCELLED.value,
                Meeting.start_time < end_time,
                Meeting.end_time > start_time,
                Meeting.participant_links.any(MeetingParticipant.user_id.in_(user_ids)),
            )
            .order_by(Meeting.start_time)
        )

        async def _query() -> list[Meeting]:
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

        return await guarded_store_call(
            _query(),
            timeout_seconds=self.timeout_seconds,
            operation="find overlapping meetings",
        )

    async def create(self, meeting: Meeting) -> Meeting:
        """
        Insert a meeting and flush it so its id is available.

        Raises
        ------
        DuplicateOccurrenceError
            If a live meeting already exists for the same
            (origin_template_id, occurrence_date).
        StoreError
            For any other integrity failure, a timeout or a database error.
        """

        async def _insert() -> Meeting:
            self.db.add(meeting)
            try:
                await self.db.flush()
            except IntegrityError as exc:
                await self.db.rollback()
                if not is_occurrence_violation(exc):
                    raise
                raise DuplicateOccurrenceError(
                    f"Meeting for template {meeting.origin_template_id} on "
                    f"{meeting.occurrence_date} already exists"
                ) from exc
            return meeting

        return await guarded_store_call(
            _insert(),
            timeout_seconds=self.timeout_seconds,
            operation="create meeting",
        )
