"""
Daily Affirmations — Reminder Scheduler.

Reconciles the live reminder set with the current preference: every pass
revokes the previous batch and registers a freshly built one, so the
dispatch facility only ever holds the most recent batch. Custom one-off
reminders live outside the batch namespace and survive a pass.

This module is backend-agnostic: it depends on the ReminderDispatchPort
protocol, not on a specific implementation.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING, Sequence

from daily_affirmations.core.preferences import effective_times
from daily_affirmations.core.reminder_builder import (
    ReminderJob,
    build_custom_job,
    build_reminder_jobs,
    is_batch_identifier,
)

if TYPE_CHECKING:
    from daily_affirmations.data.models import (
        Affirmation,
        Frequency,
        NotificationPreference,
        TimeOfDay,
    )
    from daily_affirmations.ports.reminder_port import ReminderDispatchPort

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Builds reminder batches and hands them to the dispatch facility.

    Holds no persistent state: the dispatch facility and the randomness
    source are supplied by the caller.
    """

    def __init__(
        self,
        dispatcher: ReminderDispatchPort,
        rng: random.Random | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._rng = rng or random.Random()
        self._authorized: bool | None = None
        self._in_flight: list[asyncio.Task] = []
        # Held across revoke-then-register so overlapping passes run one at a time
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    async def request_authorization(self) -> bool:
        """Ask the dispatch facility for permission to show reminders."""
        self._authorized = await self._dispatcher.request_authorization()
        if self._authorized:
            logger.info("Reminder permission granted")
        else:
            logger.info("Reminder permission denied, reminders will not be registered")
        return self._authorized

    # ------------------------------------------------------------------
    # Batch scheduling
    # ------------------------------------------------------------------

    async def schedule(
        self,
        affirmations: Sequence[Affirmation],
        frequency: Frequency | str,
        times: Sequence[TimeOfDay],
    ) -> list[asyncio.Task]:
        """Replace the live batch with one built from the given inputs.

        Returns one task per registration. The tasks are not awaited here;
        each failure is logged by its own done-callback. Callers that want
        completion can ``await asyncio.gather(*tasks, return_exceptions=True)``.
        """
        async with self._lock:
            return await self._replace_batch(affirmations, frequency, times)

    async def _replace_batch(
        self,
        affirmations: Sequence[Affirmation],
        frequency: Frequency | str,
        times: Sequence[TimeOfDay],
    ) -> list[asyncio.Task]:
        self._cancel_in_flight()
        await self._revoke_batch()

        if not affirmations:
            logger.info("No affirmations saved, nothing to schedule")
            return []

        if self._authorized is False:
            return []

        jobs = build_reminder_jobs(affirmations, frequency, times, self._rng)
        tasks = [self._register(job) for job in jobs]
        self._in_flight = tasks

        logger.info(
            "Scheduling %d reminder(s): frequency=%s times=%s",
            len(jobs),
            getattr(frequency, "value", frequency),
            ", ".join(str(t) for t in times) or "-",
        )
        return tasks

    async def apply_preferences(
        self,
        preference: NotificationPreference,
        affirmations: Sequence[Affirmation],
    ) -> list[asyncio.Task]:
        """Schedule according to a saved preference, or clear when disabled."""
        if not preference.enabled:
            async with self._lock:
                self._cancel_in_flight()
                await self._revoke_batch()
            logger.info("Notifications disabled, batch reminders cleared")
            return []
        return await self.schedule(
            affirmations, preference.frequency, effective_times(preference),
        )

    async def clear(self) -> int:
        """Revoke every pending batch reminder. Returns how many were revoked."""
        async with self._lock:
            return await self._revoke_batch()

    async def _revoke_batch(self) -> int:
        pending = await self._dispatcher.pending_identifiers()
        stale = [identifier for identifier in pending if is_batch_identifier(identifier)]
        if stale:
            await self._dispatcher.remove(stale)
            logger.debug("Revoked %d batch reminder(s)", len(stale))
        return len(stale)

    async def cancel_all(self) -> None:
        """Revoke every pending reminder, custom ones included."""
        async with self._lock:
            self._cancel_in_flight()
            await self._dispatcher.remove_all()
        logger.info("All pending reminders revoked")

    # ------------------------------------------------------------------
    # Custom reminders
    # ------------------------------------------------------------------

    def schedule_custom(
        self,
        content: str,
        trigger_time: datetime,
        repeats: bool = False,
    ) -> asyncio.Task:
        """Register a one-off reminder that batch passes leave alone."""
        job = build_custom_job(content, trigger_time, repeats=repeats)
        logger.info(
            "Scheduling custom reminder %s %s", job.identifier, job.trigger.describe(),
        )
        return self._register(job)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _register(self, job: ReminderJob) -> asyncio.Task:
        task = asyncio.ensure_future(self._dispatcher.add(job))
        task.add_done_callback(partial(_log_registration, job.identifier))
        return task

    def _cancel_in_flight(self) -> None:
        """Cancel registrations of the previous batch that have not finished."""
        for task in self._in_flight:
            if not task.done():
                task.cancel()
        self._in_flight = []


def _log_registration(identifier: str, task: asyncio.Task) -> None:
    if task.cancelled():
        logger.debug("Registration of %s cancelled by a newer batch", identifier)
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Error scheduling reminder %s: %s", identifier, exc)
    else:
        logger.debug("Reminder %s registered", identifier)
