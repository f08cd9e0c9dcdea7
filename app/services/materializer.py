# app/services/materializer.py
from __future__ import annotations

import asyncio
import logging
from datetime import date as date_type, datetime, time
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.meeting import Meeting
from app.models.meeting_activity import MeetingActivity
from app.schemas.materialization import MaterializationResult
from app.schemas.meeting import MeetingActivityAction, MeetingStatus
from app.schemas.recurring_meeting_template import RecurringMeetingTemplateRead
from app.services.audit_log import AuditLog
from app.services.conflict_detector import ConflictDetector
from app.services.meeting_store import MeetingStore
from app.services.recurrence_expander import (
    TemplateConfigurationError,
    compose_slot,
    expand_dates,
    parse_clock_time,
)
from app.services.store_errors import DuplicateOccurrenceError, StoreError, guarded_store_call
from app.services.template_store import TemplateStore

logger = logging.getLogger(__name__)


class DateOutcome(str, Enum):
    CREATED = "created"
    ALREADY_MATERIALIZED = "already_materialized"
    CONFLICT = "conflict"
    FAILED = "failed"


def build_meeting(
    template: RecurringMeetingTemplateRead,
    day: date_type,
    start_time: datetime,
    end_time: datetime,
) -> Meeting:
    """
    Build (but don't persist) the meeting generated by `template` for `day`.
    """
    return Meeting(
        title=template.title,
        description=template.description,
        meeting_type=template.meeting_type,
        location=template.location,
        meeting_link=template.meeting_link,
        notes=template.notes,
        client_id=template.client_id,
        lead_id=template.lead_id,
        participants=list(template.participants),
        creator=template.creator,
        start_time=start_time,
        end_time=end_time,
        status=MeetingStatus.SCHEDULED.value,
        recurrence_pattern=template.recurrence_pattern,
        origin_template_id=template.id,
        occurrence_date=day,
        is_deleted=False,
    )


class TemplateMaterializer:
    """
    Turns one recurring template into concrete meetings for a lookahead window.

    Steps per candidate date
    ------------------------
    1) Compose start/end from the template clock times (overnight meetings
       end on the next day).
    2) Skip silently if the template already produced a live meeting for the
       date, whatever its status; a cancelled occurrence is never recreated.
    3) Skip with a diagnostic log line if any participant is already booked.
    4) Otherwise create the meeting and its CREATED audit entry, committed
       together.

    Failure policy
    --------------
    - Configuration errors abort the template for this pass.
    - Store errors and unexpected errors skip only the current date, which
      will be attempted again on the next cycle.
    - Nothing raised while processing a template escapes `materialize`.
    """

    def __init__(self, db: AsyncSession, timeout_seconds: float | None = None) -> None:
        self.db = db
        self.timeout_seconds = timeout_seconds or get_settings().STORE_TIMEOUT_SECONDS
        self.meetings = MeetingStore(db, timeout_seconds=self.timeout_seconds)
        self.audit = AuditLog(db, timeout_seconds=self.timeout_seconds)
        self.templates = TemplateStore(db, timeout_seconds=self.timeout_seconds)
        self.conflicts = ConflictDetector(self.meetings)

    async def materialize(
        self,
        template: RecurringMeetingTemplateRead,
        reference_date: date_type | datetime,
        lookahead_days: int,
        stop_event: asyncio.Event | None = None,
    ) -> MaterializationResult:
        try:
            candidate_dates = expand_dates(template, reference_date, lookahead_days)
            start_clock = parse_clock_time(template.start_clock_time)
            end_clock = parse_clock_time(template.end_clock_time)
            if not template.participants:
                raise TemplateConfigurationError("Template has no participants")
        except TemplateConfigurationError as exc:
            logger.error(
                f"[MeetingScheduler] Configuration error in template {template.id} "
                f"({template.title!r}), skipping this cycle: {exc}"
            )
            return MaterializationResult(template_id=template.id, error=str(exc))

        counts = {outcome: 0 for outcome in DateOutcome}
        stopped = False

        for day in candidate_dates:
            if stop_event is not None and stop_event.is_set():
                logger.info(
                    f"[MeetingScheduler] Stop requested, leaving template {template.id} "
                    f"before {day.isoformat()}"
                )
                stopped = True
                break

            outcome = await self._materialize_date(template, day, start_clock, end_clock)
            counts[outcome] += 1

        try:
            await self.templates.mark_materialized(template.id, datetime.now())
        except StoreError as exc:
            logger.warning(
                f"[MeetingScheduler] Could not update last_materialized_at for "
                f"template {template.id}: {exc}"
            )
            await self._rollback()

        skipped = (
            counts[DateOutcome.ALREADY_MATERIALIZED]
            + counts[DateOutcome.CONFLICT]
            + counts[DateOutcome.FAILED]
        )
        return MaterializationResult(
            template_id=template.id,
            created=counts[DateOutcome.CREATED],
            skipped=skipped,
            already_materialized=counts[DateOutcome.ALREADY_MATERIALIZED],
            conflicts=counts[DateOutcome.CONFLICT],
            failed=counts[DateOutcome.FAILED],
            stopped=stopped,
        )

    async def _materialize_date(
        self,
        template: RecurringMeetingTemplateRead,
        day: date_type,
        start_clock: time,
        end_clock: time,
    ) -> DateOutcome:
        start_time, end_time = compose_slot(day, start_clock, end_clock)

        try:
            existing = await self.meetings.find_by_template_and_date(template.id, day)
            if existing is not None:
                return DateOutcome.ALREADY_MATERIALIZED

            if await self.conflicts.has_conflict(template.participants, start_time, end_time):
                logger.info(
                    f"[MeetingScheduler] Skipping meeting {template.title!r} "
                    f"(template {template.id}) for {day.isoformat()} - conflict detected"
                )
                return DateOutcome.CONFLICT

            meeting = await self.meetings.create(
                build_meeting(template, day, start_time, end_time)
            )
            await self.audit.append(
                MeetingActivity(
                    meeting_id=meeting.id,
                    action=MeetingActivityAction.CREATED.value,
                    detail=(
                        f"Auto-generated from recurring template {template.id}: "
                        f"{template.title}"
                    ),
                    actor=template.creator,
                )
            )
            await guarded_store_call(
                self.db.commit(),
                timeout_seconds=self.timeout_seconds,
                operation=f"commit meeting for template {template.id}",
            )
        except DuplicateOccurrenceError:
            # Another pass inserted this occurrence between our check and insert.
            logger.info(
                f"[MeetingScheduler] Meeting for template {template.id} on "
                f"{day.isoformat()} was created concurrently, skipping"
            )
            await self._rollback()
            return DateOutcome.ALREADY_MATERIALIZED
        except StoreError as exc:
            logger.warning(
                f"[MeetingScheduler] Store error for template {template.id} on "
                f"{day.isoformat()}, will retry next cycle: {exc}"
            )
            await self._rollback()
            return DateOutcome.FAILED
        except Exception:
            logger.exception(
                f"[MeetingScheduler] Unexpected error for template {template.id} "
                f"on {day.isoformat()}"
            )
            await self._rollback()
            return DateOutcome.FAILED

        logger.info(
            f"[MeetingScheduler] Created meeting {template.title!r} "
            f"for {start_time.isoformat()}"
        )
        return DateOutcome.CREATED

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except Exception:
            logger.exception("[MeetingScheduler] Rollback failed")


async def materialize_template(
    db: AsyncSession,
    template: RecurringMeetingTemplateRead,
    reference_date: date_type | datetime | None = None,
    lookahead_days: int | None = None,
    stop_event: asyncio.Event | None = None,
) -> MaterializationResult:
    """
    Materialize a single template into meetings.

    Parameters
    ----------
    db:
        Session dedicated to this template's pass.
    template:
        Detached template snapshot.
    reference_date:
        First day of the window (defaults to today, naive local clock).
    lookahead_days:
        Window size; defaults to MATERIALIZATION_LOOKAHEAD_DAYS.
    stop_event:
        Cooperative stop signal checked before each candidate date.

    Returns
    -------
    MaterializationResult
        Counts of created and skipped dates for this template.
    """
    if reference_date is None:
        reference_date = datetime.now()
    if lookahead_days is None:
        lookahead_days = get_settings().MATERIALIZATION_LOOKAHEAD_DAYS

    materializer = TemplateMaterializer(db)
    return await materializer.materialize(
        template,
        reference_date=reference_date,
        lookahead_days=lookahead_days,
        stop_event=stop_event,
    )
