# app/services/materialization_cycle.py
from __future__ import annotations

import asyncio
import logging
from datetime import date as date_type, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import get_settings
from app.schemas.materialization import CycleSummary, MaterializationResult
from app.schemas.recurring_meeting_template import RecurringMeetingTemplateRead
from app.services.materializer import materialize_template
from app.services.recurrence_expander import to_calendar_date
from app.services.store_errors import StoreError
from app.services.template_store import TemplateStore

logger = logging.getLogger(__name__)


async def run_materialization_cycle(
    session_factory: async_sessionmaker[AsyncSession],
    reference_date: date_type | datetime | None = None,
    lookahead_days: int | None = None,
    stop_event: asyncio.Event | None = None,
    concurrency: int | None = None,
) -> CycleSummary:
    """
    Materialize meetings for every active recurring template.

    Behavior
    --------
    - Loads all templates with is_active=True and is_deleted=False.
    - Runs the materializer for each template in its own session, so a
      broken template or session never affects its siblings.
    - With concurrency == 1 (default) templates are processed one after
      another; this keeps cross-template conflict checks exact. Higher
      values process templates in parallel, bounded by a semaphore.
    - A set `stop_event` prevents further templates (and further dates
      inside the current template) from being started.

    Running the cycle twice in a row creates nothing the second time.

    Returns
    -------
    CycleSummary
        Aggregate counts plus one MaterializationResult per template.
    """
    settings = get_settings()
    started_at = datetime.now()
    if reference_date is None:
        reference_date = started_at
    if lookahead_days is None:
        lookahead_days = settings.MATERIALIZATION_LOOKAHEAD_DAYS
    if concurrency is None:
        concurrency = settings.MATERIALIZATION_CONCURRENCY
    reference_day = to_calendar_date(reference_date)

    logger.info("[MeetingScheduler] Starting recurring meeting generation...")

    try:
        async with session_factory() as db:
            templates = await TemplateStore(db).list_active()
    except StoreError as exc:
        logger.error(f"[MeetingScheduler] Could not load active templates: {exc}")
        templates = []

    logger.info(f"[MeetingScheduler] Found {len(templates)} active recurring templates")

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def _process(template: RecurringMeetingTemplateRead) -> MaterializationResult | None:
        async with semaphore:
            if stop_event is not None and stop_event.is_set():
                return None
            try:
                async with session_factory() as db:
                    return await materialize_template(
                        db,
                        template,
                        reference_date=reference_day,
                        lookahead_days=lookahead_days,
                        stop_event=stop_event,
                    )
            except Exception as exc:
                logger.exception(
                    f"[MeetingScheduler] Error processing template {template.id}"
                )
                return MaterializationResult(
                    template_id=template.id,
                    error=f"{type(exc).__name__}: {exc}",
                )

    if concurrency <= 1:
        outcomes = [await _process(template) for template in templates]
    else:
        outcomes = await asyncio.gather(*(_process(template) for template in templates))

    results = [result for result in outcomes if result is not None]
    stopped = bool(stop_event is not None and stop_event.is_set())

    summary = CycleSummary(
        reference_date=reference_day,
        lookahead_days=lookahead_days,
        started_at=started_at,
        finished_at=datetime.now(),
        templates_processed=len(results),
        created=sum(r.created for r in results),
        skipped=sum(r.skipped for r in results),
        template_errors=sum(1 for r in results if r.error),
        stopped=stopped,
        results=results,
    )

    logger.info(
        f"[MeetingScheduler] Recurring meeting generation completed: "
        f"{summary.created} created, {summary.skipped} skipped, "
        f"{summary.template_errors} template errors"
        + (" (stopped early)" if stopped else "")
    )
    return summary
