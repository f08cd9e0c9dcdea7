# app/services/conflict_detector.py
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from app.services.meeting_store import MeetingStore


class ConflictDetector:
    """
    Decides whether a candidate slot would double-book any participant.

    Rules
    -----
    - Only live meetings count: soft-deleted and cancelled meetings are ignored.
    - Ad hoc meetings (no origin template) count like generated ones.
    - Ranges are half-open: a meeting ending at 11:00 does not conflict with
      one starting at 11:00.
    """

    def __init__(self, meetings: MeetingStore) -> None:
        self.meetings = meetings

    async def has_conflict(
        self,
        participants: Iterable[str],
        start_time: datetime,
        end_time: datetime,
    ) -> bool:
        overlapping = await self.meetings.find_overlapping(
            participants,
            start_time,
            end_time,
        )
        return bool(overlapping)
