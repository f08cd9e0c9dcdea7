import asyncio
from http import HTTPStatus

from app.db.session import AsyncSessionLocal, init_db
from app.models.recurring_meeting_template import RecurringMeetingTemplate


def _reset_and_seed_weekly_template() -> None:
    async def _seed() -> None:
        await init_db()
        async with AsyncSessionLocal() as session:
            session.add(
                RecurringMeetingTemplate(
                    title="Wednesday planning",
                    creator="user-owner",
                    participants=["user-a", "user-b"],
                    recurrence_pattern="weekly",
                    day_of_week=3,
                    start_clock_time="10:00",
                    end_clock_time="10:30",
                    meeting_type="online",
                )
            )
            await session.commit()

    asyncio.run(_seed())


def test_run_materialization_creates_meetings(client):
    """
    Triggering a cycle through the internal endpoint materializes the
    template and reports per-template counts.
    """
    _reset_and_seed_weekly_template()

    response = client.post(
        "/internal/run-materialization?reference_date=2025-11-17&lookahead_days=14"
    )
    assert response.status_code == HTTPStatus.OK

    data = response.json()
    assert data["reference_date"] == "2025-11-17"
    assert data["lookahead_days"] == 14
    assert data["templates_processed"] == 1
    assert data["created"] == 2
    assert data["results"][0]["created"] == 2
    assert data["results"][0]["error"] is None


def test_run_materialization_twice_is_idempotent(client):
    _reset_and_seed_weekly_template()

    first = client.post("/internal/run-materialization?reference_date=2025-11-17")
    second = client.post("/internal/run-materialization?reference_date=2025-11-17")

    assert first.status_code == HTTPStatus.OK
    assert second.status_code == HTTPStatus.OK
    assert first.json()["created"] == 2
    assert second.json()["created"] == 0
    assert second.json()["skipped"] == 2


def test_run_materialization_rejects_negative_lookahead(client):
    response = client.post("/internal/run-materialization?lookahead_days=-1")
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_run_materialization_returns_409_when_cycle_in_progress(client, monkeypatch):
    scheduler = client.app.state.materialization_scheduler

    async def busy(**kwargs):
        return None

    monkeypatch.setattr(scheduler, "run_once", busy)

    response = client.post("/internal/run-materialization")
    assert response.status_code == HTTPStatus.CONFLICT
    assert "already running" in response.json()["detail"]


def test_scheduler_status_reports_last_cycle(client):
    _reset_and_seed_weekly_template()
    client.post("/internal/run-materialization?reference_date=2025-11-17")

    response = client.get("/internal/scheduler")
    assert response.status_code == HTTPStatus.OK

    data = response.json()
    assert data["enabled"] is False
    assert data["running"] is False
    assert data["next_run_time"] is None
    assert data["last_cycle"]["reference_date"] == "2025-11-17"
