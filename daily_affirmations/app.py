"""
Daily Affirmations — Application wiring.

Builds the record stores, the preference service, the reminder scheduler
and the APScheduler dispatcher, and runs the long-lived reminder loop.

The loop picks up changes made by other commands through the record store:
a new ``updated_at`` on the preference re-applies it, and queued custom
reminders are handed to the scheduler.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from daily_affirmations.adapters.apscheduler_dispatch import APSchedulerDispatcher
from daily_affirmations.adapters.console_notifier import ConsoleNotifier
from daily_affirmations.config import settings
from daily_affirmations.core.preferences import PreferenceService
from daily_affirmations.core.scheduler import ReminderScheduler
from daily_affirmations.data.db import AffirmationDB, CustomReminderDB, PreferenceDB
from daily_affirmations.data.models import CustomReminder
from daily_affirmations.ports.reminder_port import DispatchError

logger = logging.getLogger(__name__)

_SYNC_JOB_NAME = "store_sync"


@dataclass
class AffirmationApp:
    """Everything a command needs, constructed once per process."""

    affirmations: AffirmationDB
    preferences: PreferenceService
    reminders: CustomReminderDB
    scheduler: ReminderScheduler
    dispatcher: APSchedulerDispatcher
    _applied_revision: str | None = field(default=None, init=False)

    def now(self) -> datetime:
        """Current wall-clock time in the configured timezone (naive)."""
        return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)

    def remind_later(self, affirmation_id: int) -> CustomReminder:
        """Queue a one-off reminder for one affirmation after the configured delay.

        Raises ValueError if the affirmation does not exist.
        """
        affirmation = self.affirmations.get_affirmation(affirmation_id)
        if affirmation is None:
            raise ValueError(f"Affirmation {affirmation_id} not found")
        fire_at = self.now() + timedelta(minutes=settings.CUSTOM_REMINDER_DELAY_MINUTES)
        return self.reminders.enqueue(affirmation.content, fire_at)

    def restore_custom_reminders(self) -> int:
        """Re-register custom reminders handed over by an earlier run.

        Returns how many were restored.
        """
        pending = self.reminders.list_pending(self.now())
        for reminder in pending:
            self.scheduler.schedule_custom(
                reminder.content,
                datetime.fromisoformat(reminder.fire_at),
                repeats=reminder.repeats,
            )
        if pending:
            logger.info("Restored %d custom reminder(s)", len(pending))
        return len(pending)

    async def sync(self) -> None:
        """Apply a changed preference and register queued custom reminders.

        Store and dispatch failures are logged; the next tick tries again.
        """
        try:
            preference = self.preferences.load()
            if preference.updated_at != self._applied_revision:
                tasks = await self.scheduler.apply_preferences(
                    preference, self.affirmations.list_all(),
                )
                self._applied_revision = preference.updated_at
                logger.info("Preference applied (%d reminder(s))", len(tasks))

            for reminder in self.reminders.list_unscheduled():
                self.scheduler.schedule_custom(
                    reminder.content,
                    datetime.fromisoformat(reminder.fire_at),
                    repeats=reminder.repeats,
                )
                self.reminders.mark_scheduled(reminder.id)
        except sqlite3.Error as exc:
            logger.error("Store sync failed: %s", exc)
        except DispatchError as exc:
            logger.error("Reminder reconciliation failed: %s", exc)

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Start the dispatcher and keep reminders in sync until stopped."""
        stop = stop or asyncio.Event()
        self.dispatcher.start()
        try:
            await self.scheduler.request_authorization()
            try:
                self.restore_custom_reminders()
            except sqlite3.Error as exc:
                logger.error("Could not restore custom reminders: %s", exc)
            await self.sync()
            self.dispatcher.run_repeating(
                self.sync, settings.SYNC_INTERVAL_SECONDS, _SYNC_JOB_NAME,
            )
            logger.info(
                "Watching for changes every %ds", settings.SYNC_INTERVAL_SECONDS,
            )
            await stop.wait()
        finally:
            try:
                await self.scheduler.cancel_all()
            except DispatchError as exc:
                logger.error("Could not revoke pending reminders: %s", exc)
            self.dispatcher.shutdown()


def build_app(db_path: str | None = None) -> AffirmationApp:
    """Construct the app. Raises sqlite3.Error if the database cannot be opened."""
    db_path = db_path or settings.DATABASE_PATH

    affirmation_db = AffirmationDB(db_path=db_path)
    preference_db = PreferenceDB(db_path=db_path)
    reminder_db = CustomReminderDB(db_path=db_path)

    first_run = preference_db.load() is None
    if first_run and settings.SEED_SAMPLE_AFFIRMATIONS:
        affirmation_db.seed_samples()

    preferences = PreferenceService(preference_db)
    preferences.load()

    dispatcher = APSchedulerDispatcher(ConsoleNotifier(), timezone=settings.TIMEZONE)
    scheduler = ReminderScheduler(dispatcher)

    return AffirmationApp(
        affirmations=affirmation_db,
        preferences=preferences,
        reminders=reminder_db,
        scheduler=scheduler,
        dispatcher=dispatcher,
    )
