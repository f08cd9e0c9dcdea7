# tests/conftest.py
import os

# Must be set before the app modules read settings / build the engine.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///./test_recurring_meetings.db")
os.environ["SCHEDULER_ENABLED"] = "false"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from app.db.session import AsyncSessionLocal, init_db  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models.meeting import Meeting  # noqa: E402
from app.models.recurring_meeting_template import RecurringMeetingTemplate  # noqa: E402
from app.schemas.recurring_meeting_template import RecurringMeetingTemplateRead  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    Shared TestClient fixture for all API tests.

    Uses the application factory so configuration stays test-friendly.
    The background scheduler is disabled via SCHEDULER_ENABLED=false.
    """
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db_session():
    """
    Fresh schema + session for each async test.
    """
    await init_db()
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory():
    return AsyncSessionLocal


@pytest.fixture
def template_factory(db_session):
    """
    Persist a recurring template and return its detached read snapshot.
    """

    async def _create(**overrides) -> RecurringMeetingTemplateRead:
        data = {
            "title": "Team sync",
            "description": "Recurring sync",
            "meeting_type": "online",
            "meeting_link": "https://meet.example.com/team-sync",
            "creator": "user-owner",
            "participants": ["user-a", "user-b"],
            "recurrence_pattern": "daily",
            "start_clock_time": "10:00",
            "end_clock_time": "10:30",
            "duration_minutes": 30,
            "is_active": True,
            "is_deleted": False,
        }
        data.update(overrides)
        template = RecurringMeetingTemplate(**data)
        db_session.add(template)
        await db_session.commit()
        await db_session.refresh(template)
        return RecurringMeetingTemplateRead.model_validate(template)

    return _create


@pytest.fixture
def meeting_factory(db_session):
    """
    Persist an ad hoc (or template-linked) meeting.
    """

    async def _create(
        start_time: datetime,
        end_time: datetime,
        participants: list[str],
        **overrides,
    ) -> Meeting:
        data = {
            "title": "Ad hoc meeting",
            "meeting_type": "offline",
            "creator": "user-owner",
            "participants": participants,
            "start_time": start_time,
            "end_time": end_time,
            "status": "scheduled",
            "recurrence_pattern": "once",
            "is_deleted": False,
        }
        data.update(overrides)
        meeting = Meeting(**data)
        db_session.add(meeting)
        await db_session.commit()
        await db_session.refresh(meeting)
        return meeting

    return _create


async def count_meetings(session, template_id: str, include_deleted: bool = False) -> int:
    stmt = select(func.count(Meeting.id)).where(Meeting.origin_template_id == template_id)
    if not include_deleted:
        stmt = stmt.where(Meeting.is_deleted.is_(False))
    result = await session.execute(stmt)
    return int(result.scalar_one())


@pytest.fixture
def meeting_counter():
    return count_meetings
