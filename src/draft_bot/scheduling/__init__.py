"""
Timed creation of unowned sessions.

Entries come from a TOML file keyed by server id::

    [["123456789012345678"]]
    cron = "0 18 * * fri"
    time = "19:30"
    template = "cube"
    description = "Weekly cube draft"

``cron`` is a standard five-field crontab expression evaluated on the local
clock; use day names (``mon``-``sun``) in the day-of-week field. ``time`` is
optional and only sets the clock time shown as the session's date; without
it the session is dated at the moment it was created.

Each entry becomes one APScheduler cron job on an ``AsyncIOScheduler``.
Failed and missed runs are logged and the job stays scheduled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time
from pathlib import Path
from typing import Awaitable, Callable, Iterable

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MISSED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from draft_bot.config.loader import load_toml_file
from draft_bot.database import ServerId

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULED_DESCRIPTION = "Scheduled Session"


@dataclass(frozen=True)
class ScheduledEntry:
    server_id: ServerId
    cron: str
    at: time | None = None
    template: str | None = None
    description: str | None = None

    def trigger(self, timezone=None) -> CronTrigger:
        return CronTrigger.from_crontab(self.cron, timezone=timezone)


def parse_time(raw: str) -> time:
    try:
        hours, minutes = (int(part) for part in raw.strip().split(":"))
        return time(hour=hours, minute=minutes)
    except ValueError as exc:
        raise ValueError(f"Invalid schedule time {raw!r}; expected HH:MM") from exc


def load_schedule(path: str | Path) -> list[ScheduledEntry]:
    raw = load_toml_file(path)
    if not raw:
        logger.info("No schedule found at %s - starting without scheduled sessions", path)

    entries: list[ScheduledEntry] = []
    for server_id, items in raw.items():
        for item in items:
            if "cron" not in item:
                raise ValueError(f"Scheduled entry for server {server_id} has no cron expression")
            entry = ScheduledEntry(
                server_id=str(server_id),
                cron=str(item["cron"]).strip(),
                at=parse_time(str(item["time"])) if "time" in item else None,
                template=item.get("template"),
                description=item.get("description"),
            )
            # Reject bad expressions at load time.
            entry.trigger()
            entries.append(entry)
    return entries


def session_date(entry: ScheduledEntry, fired_at: datetime) -> datetime:
    """Date shown on a session created by ``entry`` when its job ran at ``fired_at``."""

    fired_at = fired_at.replace(tzinfo=None, second=0, microsecond=0)
    if entry.at is None:
        return fired_at
    return datetime.combine(fired_at.date(), entry.at)


def scheduled_overrides(entry: ScheduledEntry, when: datetime) -> dict:
    return {
        "description": entry.description or DEFAULT_SCHEDULED_DESCRIPTION,
        "fire_when_full": False,
        "date": when,
    }


CreateCallback = Callable[[ScheduledEntry, datetime], Awaitable[None]]


def _on_job_error(event) -> None:
    logger.error(
        "Scheduled session job %s failed: %s",
        event.job_id,
        event.exception,
        exc_info=event.exception,
    )


def _on_job_missed(event) -> None:
    logger.warning(
        "Scheduled session job %s missed its run at %s", event.job_id, event.scheduled_run_time
    )


class SessionScheduler:
    def __init__(
        self,
        entries: Iterable[ScheduledEntry],
        create: CreateCallback,
        clock: Callable[[], datetime] = datetime.now,
        timezone=None,
    ) -> None:
        self._entries = list(entries)
        self._create = create
        self._clock = clock
        self._timezone = timezone
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def jobs(self) -> list:
        return self._scheduler.get_jobs() if self._scheduler is not None else []

    def start(self) -> AsyncIOScheduler:
        """Schedule every entry; must be called with the event loop running."""

        if self.running:
            return self._scheduler

        scheduler = AsyncIOScheduler(
            timezone=self._timezone,
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
        )
        for index, entry in enumerate(self._entries):
            scheduler.add_job(
                self.fire,
                trigger=entry.trigger(self._timezone),
                args=[entry],
                id=f"scheduled-session-{entry.server_id}-{index}",
                name=f"Scheduled session for server {entry.server_id} ({entry.cron})",
                replace_existing=True,
            )
        scheduler.add_listener(_on_job_error, EVENT_JOB_ERROR)
        scheduler.add_listener(_on_job_missed, EVENT_JOB_MISSED)
        scheduler.start()
        self._scheduler = scheduler

        if self._entries:
            logger.info("Scheduled %d recurring session(s)", len(self._entries))
        return scheduler

    async def fire(self, entry: ScheduledEntry) -> None:
        await self._create(entry, session_date(entry, self._clock()))

    async def stop(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("Session scheduler stopped")


__all__ = [
    "ScheduledEntry",
    "SessionScheduler",
    "load_schedule",
    "parse_time",
    "scheduled_overrides",
    "session_date",
]
