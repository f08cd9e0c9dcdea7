from datetime import date

import pytest

from app.core.config import Settings
from app.services.scheduler import DAILY_JOB_ID, STARTUP_JOB_ID, MaterializationScheduler

MONDAY = date(2025, 11, 17)


def _settings(**overrides) -> Settings:
    data = {
        "SCHEDULER_ENABLED": True,
        "SCHEDULER_CRON_HOUR": 0,
        "SCHEDULER_CRON_MINUTE": 5,
        "SCHEDULER_STARTUP_DELAY_SECONDS": 3600,
    }
    data.update(overrides)
    return Settings(**data)


@pytest.mark.asyncio
async def test_run_once_records_last_cycle(db_session, session_factory, template_factory):
    await template_factory()
    scheduler = MaterializationScheduler(session_factory, settings=_settings())

    summary = await scheduler.run_once(reference_date=MONDAY, lookahead_days=1)

    assert summary is not None
    assert summary.created == 2
    assert scheduler.last_cycle == summary
    assert scheduler.is_running_cycle is False


@pytest.mark.asyncio
async def test_trigger_is_skipped_while_a_cycle_runs(db_session, session_factory):
    scheduler = MaterializationScheduler(session_factory, settings=_settings())

    async with scheduler._lock:
        assert scheduler.is_running_cycle is True
        assert await scheduler.run_once(reference_date=MONDAY) is None

    assert scheduler.last_cycle is None


@pytest.mark.asyncio
async def test_start_registers_daily_and_startup_jobs(db_session, session_factory):
    scheduler = MaterializationScheduler(
        session_factory,
        settings=_settings(SCHEDULER_CRON_HOUR=2, SCHEDULER_CRON_MINUTE=30),
    )

    scheduler.start()
    try:
        assert scheduler.is_started is True
        assert scheduler._scheduler.get_job(DAILY_JOB_ID) is not None
        assert scheduler._scheduler.get_job(STARTUP_JOB_ID) is not None

        next_run = scheduler.next_run_time()
        assert next_run is not None
        assert (next_run.hour, next_run.minute) == (2, 30)

        status = scheduler.status()
        assert status.enabled is True
        assert status.running is False
        assert status.next_run_time == next_run
    finally:
        await scheduler.stop()

    assert scheduler.is_started is False
    assert scheduler.next_run_time() is None


@pytest.mark.asyncio
async def test_no_cycles_after_stop(db_session, session_factory, template_factory):
    await template_factory()
    scheduler = MaterializationScheduler(session_factory, settings=_settings())

    await scheduler.stop()

    assert await scheduler.run_once(reference_date=MONDAY) is None
