"""Reminder job builder — pure business logic.

Turns a pool of affirmations, a frequency and a list of times of day into the
concrete reminder jobs for one scheduling pass, and builds one-off custom
jobs. Content is assigned to slots from a shuffled copy of the pool.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
import random
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from daily_affirmations.data.models import Affirmation, Frequency, TimeOfDay

logger = logging.getLogger(__name__)

DAILY_TITLE = "Your Daily Affirmation"
WEEKLY_TITLE = "Your Weekly Affirmation"
CUSTOM_TITLE = "Custom Affirmation"

# Weekday ordinals in a 1 = Sunday week
SUNDAY = 1
WEEKDAY_ORDINALS = range(2, 7)  # Monday..Friday

_BATCH_ID_RE = re.compile(
    r"^(daily-affirmation-\d+|weekly-affirmation-\d+|affirmation-[2-6]-\d+)$"
)


@dataclass(frozen=True)
class ReminderTrigger:
    """A calendar-style rule.

    kind is "daily" (every day at time), "weekly" (every week on weekday at
    time) or "once" (at an exact datetime; with repeats=True it recurs every
    day at that time of day).
    """

    kind: str
    time: TimeOfDay
    weekday: int | None = None      # 1 = Sunday .. 7 = Saturday
    at: datetime | None = None
    repeats: bool = True

    @classmethod
    def daily(cls, time: TimeOfDay) -> ReminderTrigger:
        return cls(kind="daily", time=time)

    @classmethod
    def weekly(cls, weekday: int, time: TimeOfDay) -> ReminderTrigger:
        if not 1 <= weekday <= 7:
            raise ValueError(f"Weekday ordinal out of range: {weekday}")
        return cls(kind="weekly", time=time, weekday=weekday)

    @classmethod
    def once(cls, at: datetime, repeats: bool = False) -> ReminderTrigger:
        return cls(
            kind="once",
            time=TimeOfDay(at.hour, at.minute),
            at=at.replace(second=0, microsecond=0),
            repeats=repeats,
        )

    def describe(self) -> str:
        if self.kind == "daily":
            return f"every day at {self.time}"
        if self.kind == "weekly":
            return f"every {_WEEKDAY_NAMES[self.weekday]} at {self.time}"
        if self.repeats:
            return f"from {self.at:%Y-%m-%d}, every day at {self.time}"
        return f"on {self.at:%Y-%m-%d %H:%M}"


_WEEKDAY_NAMES = {
    1: "Sunday",
    2: "Monday",
    3: "Tuesday",
    4: "Wednesday",
    5: "Thursday",
    6: "Friday",
    7: "Saturday",
}


@dataclass(frozen=True)
class ReminderJob:
    """One reminder to register with the dispatch facility."""

    identifier: str
    title: str
    body: str
    trigger: ReminderTrigger
    time_index: int | None = None


def daily_identifier(time_index: int) -> str:
    return f"daily-affirmation-{time_index}"


def weekday_identifier(weekday: int, time_index: int) -> str:
    return f"affirmation-{weekday}-{time_index}"


def weekly_identifier(time_index: int) -> str:
    return f"weekly-affirmation-{time_index}"


def is_batch_identifier(identifier: str) -> bool:
    """True for identifiers produced by build_reminder_jobs (not custom jobs)."""
    return bool(_BATCH_ID_RE.match(identifier))


def shuffled_pool(
    affirmations: Sequence[Affirmation],
    rng: random.Random,
) -> list[Affirmation]:
    """Return a shuffled copy; the caller's sequence is left untouched."""
    pool = list(affirmations)
    rng.shuffle(pool)
    return pool


def build_reminder_jobs(
    affirmations: Sequence[Affirmation],
    frequency: Frequency | str,
    times: Sequence[TimeOfDay],
    rng: random.Random,
) -> list[ReminderJob]:
    """Build the batch of reminder jobs for one scheduling pass.

    Args:
        affirmations: Current pool. Empty pool means no jobs.
        frequency: "daily", "weekdays" or "weekly". Anything else yields
            no jobs.
        times: Times of day; the position of each time is its slot index.
        rng: Randomness source used to shuffle the pool.

    Returns:
        Daily and weekly produce one job per time; weekdays produce five
        (Monday to Friday) per time.
    """
    if not affirmations:
        return []

    try:
        freq = Frequency(frequency)
    except ValueError:
        logger.warning("Unknown frequency %r, no reminders built", frequency)
        return []

    shuffled = shuffled_pool(affirmations, rng)
    count = len(shuffled)
    jobs: list[ReminderJob] = []

    for index, time in enumerate(times):
        if freq is Frequency.DAILY:
            # More slots than affirmations: repeat the last one
            affirmation = shuffled[min(index, count - 1)]
            jobs.append(ReminderJob(
                identifier=daily_identifier(index),
                title=DAILY_TITLE,
                body=affirmation.content,
                trigger=ReminderTrigger.daily(time),
                time_index=index,
            ))
        elif freq is Frequency.WEEKDAYS:
            for weekday in WEEKDAY_ORDINALS:
                affirmation = shuffled[(weekday - 2) % count]
                jobs.append(ReminderJob(
                    identifier=weekday_identifier(weekday, index),
                    title=DAILY_TITLE,
                    body=affirmation.content,
                    trigger=ReminderTrigger.weekly(weekday, time),
                    time_index=index,
                ))
        elif freq is Frequency.WEEKLY:
            jobs.append(ReminderJob(
                identifier=weekly_identifier(index),
                title=WEEKLY_TITLE,
                body=shuffled[0].content,
                trigger=ReminderTrigger.weekly(SUNDAY, time),
                time_index=index,
            ))

    logger.debug(
        "Built %d %s reminder(s) for %d time(s) from %d affirmation(s)",
        len(jobs), freq.value, len(times), count,
    )
    return jobs


def build_custom_job(
    content: str,
    trigger_time: datetime,
    repeats: bool = False,
) -> ReminderJob:
    """Build a one-off job with a random identifier outside the batch namespace."""
    return ReminderJob(
        identifier=str(uuid.uuid4()),
        title=CUSTOM_TITLE,
        body=content,
        trigger=ReminderTrigger.once(trigger_time, repeats=repeats),
    )
