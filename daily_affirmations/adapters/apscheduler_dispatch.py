"""APScheduler dispatch adapter — implements ReminderDispatchPort.

Registers each reminder job as an APScheduler job on an AsyncIOScheduler
(in-process memory job store). When a job fires, the title and body are
handed to the NotificationPort.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable
from zoneinfo import ZoneInfo

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.date import DateTrigger

from daily_affirmations.ports.reminder_port import DispatchError

if TYPE_CHECKING:
    from daily_affirmations.core.reminder_builder import ReminderJob, ReminderTrigger
    from daily_affirmations.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

# APScheduler job name marking reminder jobs, as opposed to maintenance jobs
_REMINDER_JOB_NAME = "reminder"

# 1 = Sunday week ordinal -> cron day_of_week
_CRON_WEEKDAYS = {
    1: "sun",
    2: "mon",
    3: "tue",
    4: "wed",
    5: "thu",
    6: "fri",
    7: "sat",
}

_MISFIRE_GRACE_SECONDS = 300


def to_aps_trigger(trigger: ReminderTrigger, tz: ZoneInfo) -> BaseTrigger:
    """Translate a ReminderTrigger into an APScheduler trigger."""
    hour, minute = trigger.time.hour, trigger.time.minute

    if trigger.kind == "daily":
        return CronTrigger(hour=hour, minute=minute, timezone=tz)

    if trigger.kind == "weekly":
        return CronTrigger(
            day_of_week=_CRON_WEEKDAYS[trigger.weekday],
            hour=hour,
            minute=minute,
            timezone=tz,
        )

    if trigger.kind == "once":
        at = _localize(trigger.at, tz)
        if trigger.repeats:
            return CronTrigger(hour=hour, minute=minute, start_date=at, timezone=tz)
        return DateTrigger(run_date=at, timezone=tz)

    raise DispatchError(f"Unsupported trigger kind: {trigger.kind!r}")


def _localize(value: datetime, tz: ZoneInfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


class APSchedulerDispatcher:
    """APScheduler implementation of ReminderDispatchPort."""

    def __init__(
        self,
        notifier: NotificationPort,
        timezone: str = "UTC",
        scheduler: AsyncIOScheduler | None = None,
    ) -> None:
        self._notifier = notifier
        self._tz = ZoneInfo(timezone)
        self._scheduler = scheduler or AsyncIOScheduler(timezone=self._tz)

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Reminder dispatcher started (%s)", self._tz.key)

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Reminder dispatcher stopped")

    def run_repeating(
        self,
        callback: Callable[[], Awaitable[Any]],
        seconds: int,
        name: str,
    ) -> None:
        """Register a maintenance job that reminder operations never touch."""
        self._scheduler.add_job(
            callback,
            trigger="interval",
            seconds=seconds,
            id=name,
            name=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    # -- ReminderDispatchPort --------------------------------------------

    async def request_authorization(self) -> bool:
        # Local delivery needs no permission
        return True

    async def add(self, job: ReminderJob) -> None:
        trigger = to_aps_trigger(job.trigger, self._tz)

        if job.trigger.kind == "once" and not job.trigger.repeats:
            run_at = _localize(job.trigger.at, self._tz)
            if run_at <= datetime.now(self._tz):
                raise DispatchError(f"Trigger date {run_at.isoformat()} is in the past")

        try:
            self._scheduler.add_job(
                self._deliver,
                trigger=trigger,
                id=job.identifier,
                name=_REMINDER_JOB_NAME,
                kwargs={"title": job.title, "body": job.body},
                replace_existing=True,
                misfire_grace_time=_MISFIRE_GRACE_SECONDS,
            )
        except (ValueError, LookupError) as exc:
            raise DispatchError(f"Could not register {job.identifier}: {exc}") from exc

        logger.debug("Registered %s: %s", job.identifier, job.trigger.describe())

    async def pending_identifiers(self) -> list[str]:
        return [
            job.id for job in self._scheduler.get_jobs()
            if job.name == _REMINDER_JOB_NAME
        ]

    async def remove(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            try:
                self._scheduler.remove_job(identifier)
            except JobLookupError:
                logger.debug("Reminder %s already gone", identifier)

    async def remove_all(self) -> None:
        await self.remove(await self.pending_identifiers())

    # -- delivery --------------------------------------------------------

    async def _deliver(self, title: str, body: str) -> None:
        try:
            await self._notifier.send_message(title, body)
        except Exception as exc:
            logger.error("Failed to deliver reminder %r: %s", title, exc)
