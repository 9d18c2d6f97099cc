"""
Tests for the cron table, the fire handler and the scheduler wiring.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone

import pytest

from wakecron.config import Settings
from wakecron.schemas import AuthMode, ScheduledTrigger, TriggerOutcome, WakeUpOutcome
from wakecron.tasks.jobs import build_schedule, run_trigger
from wakecron.tasks.schedule import create_scheduler, cron_trigger, start_scheduler

from conftest import TOKEN, Downstream


def _by_name(settings):
    return {t.name: t for t in build_schedule(settings)}


def test_schedule_names_are_unique(settings):
    triggers = build_schedule(settings)
    assert len({t.name for t in triggers}) == len(triggers)


def test_schedule_table_contents(settings):
    table = _by_name(settings)

    coin = table["wake-coin-sifter"]
    assert coin.kind == "wake_up"
    assert coin.auth_mode is AuthMode.TOKEN_HEADER
    assert coin.path == "/blacklist"
    assert coin.max_jitter_seconds == settings.WAKEUP_MAX_JITTER_SECONDS

    generic = table["wake-generic"]
    assert generic.auth_mode is AuthMode.BEARER
    assert generic.max_jitter_seconds == settings.WAKEUP_SHORT_JITTER_SECONDS
    assert generic.max_jitter_seconds < coin.max_jitter_seconds

    for timeframe in ("1h", "4h", "12h", "1d"):
        job = table[f"task-{timeframe}"]
        assert job.kind == "run_task"
        assert job.url_setting == "KLINE_PROVIDER_URL"
        assert job.path == f"/api/jobs/run/{timeframe}"
        assert job.payload == {"timeframe": timeframe}


def test_triggers_are_immutable(settings):
    trigger = build_schedule(settings)[0]
    with pytest.raises(Exception):
        trigger.cron = "* * * * *"


def test_no_two_triggers_fire_on_the_same_tick(settings):
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    seen = {}

    for trigger in build_schedule(settings):
        cron = cron_trigger(trigger)
        fire = cron.get_next_fire_time(None, start)
        while fire is not None and fire < end:
            assert fire not in seen, f"{trigger.name} collides with {seen[fire]} at {fire}"
            seen[fire] = trigger.name
            fire = cron.get_next_fire_time(fire, fire + timedelta(seconds=1))


def test_hourly_job_skips_midnight_and_daily_job_runs_at_midnight(settings):
    table = _by_name(settings)
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    hourly = cron_trigger(table["task-1h"])
    fires = []
    fire = hourly.get_next_fire_time(None, start)
    while fire < start + timedelta(days=1):
        fires.append(fire)
        fire = hourly.get_next_fire_time(fire, fire + timedelta(seconds=1))
    assert len(fires) == 23
    assert all(f.hour != 0 for f in fires)

    daily = cron_trigger(table["task-1d"]).get_next_fire_time(None, start)
    assert (daily.hour, daily.minute) == (0, 0)


def test_create_scheduler_registers_every_trigger(settings):
    scheduler = create_scheduler(settings)
    job_ids = {job.id for job in scheduler.get_jobs()}
    assert job_ids == set(_by_name(settings))
    assert not scheduler.running


def test_start_scheduler_disabled():
    settings = Settings(_env_file=None, SECRET_TOKEN=TOKEN, SCHEDULER_ENABLED=False)
    assert start_scheduler(settings) is None


@pytest.mark.asyncio
async def test_run_trigger_dispatches_job(settings, caplog):
    caplog.set_level(logging.INFO)
    downstream = Downstream(status_code=202)
    trigger = _by_name(settings)["task-1h"]

    async with downstream.client() as client:
        outcome = await run_trigger(trigger, settings, client=client)

    assert outcome is TriggerOutcome.ACCEPTED
    assert [str(r.url) for r in downstream.requests] == ["http://kline.test/api/jobs/run/1h"]


@pytest.mark.asyncio
async def test_run_trigger_dispatches_wake_up(settings, downstream):
    trigger = _by_name(settings)["wake-coin-sifter"]

    async with downstream.client() as client:
        task = await run_trigger(trigger, settings, client=client, max_jitter_seconds=0)
        assert isinstance(task, asyncio.Task)
        outcome = await task

    assert outcome is WakeUpOutcome.OK
    assert str(downstream.requests[0].url) == "http://coin-sifter.test/blacklist"


@pytest.mark.asyncio
async def test_missing_url_skips_only_that_trigger(caplog):
    caplog.set_level(logging.INFO)
    settings = Settings(
        _env_file=None,
        SECRET_TOKEN=TOKEN,
        KLINE_PROVIDER_URL="http://kline.test",
        WAKEUP_URL="http://wakeup.test",
    )
    downstream = Downstream(status_code=202)
    table = _by_name(settings)

    async with downstream.client() as client:
        results = {}
        for name, trigger in table.items():
            results[name] = await run_trigger(trigger, settings, client=client, max_jitter_seconds=0)
        tasks = [r for r in results.values() if isinstance(r, asyncio.Task)]
        await asyncio.gather(*tasks)

    assert results["wake-coin-sifter"] is None
    hosts = {r.url.host for r in downstream.requests}
    assert "coin-sifter.test" not in hosts
    assert hosts == {"kline.test", "wakeup.test"}
    # every other trigger produced exactly one call
    assert len(downstream.requests) == len(table) - 1

    skipped = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(skipped) == 1
    assert "COIN_SIFTER_URL" in skipped[0].getMessage()


@pytest.mark.asyncio
async def test_missing_url_makes_no_http_call():
    settings = Settings(_env_file=None, SECRET_TOKEN=TOKEN)
    downstream = Downstream()
    trigger = ScheduledTrigger(
        name="probe",
        cron="* * * * *",
        kind="run_task",
        service="probe",
        url_setting="WAKEUP_URL",
        path="api/run",
    )
    assert trigger.path == "/api/run"

    async with downstream.client() as client:
        assert await run_trigger(trigger, settings, client=client) is None

    assert downstream.requests == []
