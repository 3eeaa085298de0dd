import asyncio
import logging
from datetime import datetime, time, timedelta, timezone
from types import SimpleNamespace

import pytest

from draft_bot import scheduling
from draft_bot.scheduling import (
    ScheduledEntry,
    SessionScheduler,
    load_schedule,
    parse_time,
    scheduled_overrides,
    session_date,
)


def _fire_times(entry, start, days):
    trigger = entry.trigger(timezone.utc)
    end = start + timedelta(days=days)
    times = []
    fire = trigger.get_next_fire_time(None, start)
    while fire is not None and fire < end:
        times.append(fire)
        fire = trigger.get_next_fire_time(fire, fire)
    return times


def test_weekly_cron_does_not_fire_daily():
    start = datetime(2026, 3, 10, tzinfo=timezone.utc)  # a Tuesday

    weekly = _fire_times(ScheduledEntry("42", "30 19 * * tue"), start, days=14)
    daily = _fire_times(ScheduledEntry("42", "30 19 * * *"), start, days=14)

    assert weekly == [
        datetime(2026, 3, 10, 19, 30, tzinfo=timezone.utc),
        datetime(2026, 3, 17, 19, 30, tzinfo=timezone.utc),
    ]
    assert len(daily) == 14


def test_weekday_cron_skips_weekend():
    start = datetime(2026, 3, 9, tzinfo=timezone.utc)  # a Monday

    fires = _fire_times(ScheduledEntry("42", "0 18 * * mon-fri"), start, days=7)

    assert [f.strftime("%a") for f in fires] == ["Mon", "Tue", "Wed", "Thu", "Fri"]


def test_parse_time_rejects_garbage():
    assert parse_time(" 07:05 ") == time(7, 5)
    with pytest.raises(ValueError):
        parse_time("seven")
    with pytest.raises(ValueError):
        parse_time("25:00")


def test_load_schedule(tmp_path):
    path = tmp_path / "schedule.toml"
    path.write_text(
        '[["42"]]\ncron = "0 18 * * fri"\ntime = "19:30"\ntemplate = "cube"\n\n'
        '[["42"]]\ncron = "0 12 * * sat,sun"\n\n'
        '[["7"]]\ncron = "15 8 * * *"\ndescription = "Morning draft"\n',
        encoding="utf-8",
    )

    entries = load_schedule(path)

    assert entries == [
        ScheduledEntry("42", "0 18 * * fri", time(19, 30), template="cube"),
        ScheduledEntry("42", "0 12 * * sat,sun"),
        ScheduledEntry("7", "15 8 * * *", description="Morning draft"),
    ]
    assert load_schedule(tmp_path / "absent.toml") == []


@pytest.mark.parametrize(
    "body",
    [
        'time = "19:30"\n',
        'cron = "every friday"\n',
        'cron = "0 25 * * *"\n',
    ],
)
def test_load_schedule_rejects_bad_entries(tmp_path, body):
    path = tmp_path / "schedule.toml"
    path.write_text('[["42"]]\n' + body, encoding="utf-8")

    with pytest.raises(ValueError):
        load_schedule(path)


def test_session_date_uses_entry_time_on_fire_day():
    fired = datetime(2026, 3, 13, 18, 0, 7, tzinfo=timezone.utc)

    assert session_date(ScheduledEntry("42", "0 18 * * fri", time(19, 30)), fired) == datetime(
        2026, 3, 13, 19, 30
    )
    assert session_date(ScheduledEntry("42", "0 18 * * fri"), fired) == datetime(2026, 3, 13, 18, 0)


def test_scheduled_overrides():
    when = datetime(2026, 3, 10, 19, 30)

    overrides = scheduled_overrides(ScheduledEntry("42", "30 19 * * *"), when)

    assert overrides == {
        "description": "Scheduled Session",
        "fire_when_full": False,
        "date": when,
    }


def test_scheduler_registers_jobs_and_stops():
    fired = []
    entries = [
        ScheduledEntry("42", "0 18 * * fri", time(19, 30)),
        ScheduledEntry("7", "15 8 * * *"),
    ]

    async def create(entry, when):
        fired.append((entry.server_id, when))

    async def scenario():
        scheduler = SessionScheduler(
            entries,
            create,
            clock=lambda: datetime(2026, 3, 13, 18, 0, 2),
            timezone=timezone.utc,
        )
        started = scheduler.start()
        assert scheduler.start() is started
        assert scheduler.running
        jobs = scheduler.jobs
        await scheduler.fire(entries[0])
        await scheduler.stop()
        return scheduler, jobs

    scheduler, jobs = asyncio.run(scenario())

    assert not scheduler.running
    assert scheduler.jobs == []
    assert [job.args[0] for job in jobs] == entries
    assert fired == [("42", datetime(2026, 3, 13, 19, 30))]


def test_failed_job_is_logged(caplog):
    event = SimpleNamespace(job_id="scheduled-session-42-0", exception=RuntimeError("boom"))

    with caplog.at_level(logging.ERROR, logger="draft_bot.scheduling"):
        scheduling._on_job_error(event)

    assert "scheduled-session-42-0 failed: boom" in caplog.text
