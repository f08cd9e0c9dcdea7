# app/services/audit_log.py
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.models.meeting_activity import MeetingActivity
from app.services.store_errors import guarded_store_call


class AuditLog:
    """
    Append-only sink for meeting activity entries.

    Entries are flushed into the caller's transaction, never committed here.
    """

    def __init__(self, db: AsyncSession, timeout_seconds: float | None = None) -> None:
        self.db = db
        self.timeout_seconds = timeout_seconds or get_settings().STORE_TIMEOUT_SECONDS

    async def append(self, entry: MeetingActivity) -> MeetingActivity:
        async def _insert() -> MeetingActivity:
            self.db.add(entry)
            await self.db.flush()
            return entry

        return await guarded_store_call(
            _insert(),
            timeout_seconds=self.timeout_seconds,
            operation=f"append audit entry for meeting {entry.meeting_id}",
        )
