# app/services/template_store.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.recurring_meeting_template import RecurringMeetingTemplate
from app.schemas.recurring_meeting_template import RecurringMeetingTemplateRead
from app.services.store_errors import guarded_store_call


class TemplateStore:
    """
    Read access to recurring meeting templates, plus the single write the
    scheduler is allowed to make (`last_materialized_at`).
    """

    def __init__(self, db: AsyncSession, timeout_seconds: float | None = None) -> None:
        self.db = db
        self.timeout_seconds = timeout_seconds or get_settings().STORE_TIMEOUT_SECONDS

    async def list_active(self) -> list[RecurringMeetingTemplateRead]:
        """
        Return detached snapshots of all active, non-deleted templates.
        """
        stmt = (
            select(RecurringMeetingTemplate)
            .where(
                RecurringMeetingTemplate.is_active.is_(True),
                RecurringMeetingTemplate.is_deleted.is_(False),
            )
            .order_by(RecurringMeetingTemplate.created_at, RecurringMeetingTemplate.id)
        )

        async def _query() -> list[RecurringMeetingTemplateRead]:
            result = await self.db.execute(stmt)
            return [
                RecurringMeetingTemplateRead.model_validate(template)
                for template in result.scalars().all()
            ]

        return await guarded_store_call(
            _query(),
            timeout_seconds=self.timeout_seconds,
            operation="list active templates",
        )

    async def mark_materialized(self, template_id: str, timestamp: datetime) -> None:
        """
        Stamp the template with the time of its latest materialization pass.
        """
        stmt = (
            update(RecurringMeetingTemplate)
            .where(RecurringMeetingTemplate.id == template_id)
            .values(last_materialized_at=timestamp)
        )

        async def _update() -> None:
            await self.db.execute(stmt)
            await self.db.commit()

        await guarded_store_call(
            _update(),
            timeout_seconds=self.timeout_seconds,
            operation=f"mark template {template_id} materialized",
        )
