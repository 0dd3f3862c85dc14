"""
Daily Affirmations — Data Models.

Affirmations and the notification preference persist in SQLite. Reminder jobs
are derived from them on every scheduling pass and are never stored here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

MAX_DAILY_NOTIFICATIONS = 5
AFFIRMATION_CHARACTER_LIMIT = 150


class Frequency(str, Enum):
    """Delivery cadence for batch reminders."""

    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKLY = "weekly"


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """An (hour, minute) pair without a date, used as a recurring anchor."""

    hour: int
    minute: int = 0

    def __post_init__(self) -> None:
        if not (0 <= self.hour <= 23 and 0 <= self.minute <= 59):
            raise ValueError(f"Hour/minute out of range: {self.hour}:{self.minute}")

    @classmethod
    def parse(cls, raw: str) -> TimeOfDay:
        """Parse "HH:MM" (or "H:MM"). Raises ValueError on malformed input."""
        text = raw.strip()
        if ":" not in text:
            raise ValueError(f"No colon in time: {raw!r}")
        hour_str, minute_str = text.split(":", 1)
        try:
            return cls(int(hour_str), int(minute_str))
        except ValueError as exc:
            raise ValueError(f"Invalid time {raw!r}: {exc}") from exc

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


DEFAULT_TIME = TimeOfDay(8, 0)


@dataclass
class Affirmation:
    """A short user-authored positive statement."""

    id: int
    content: str
    is_favorite: bool = False
    created_at: str = ""


@dataclass
class NotificationPreference:
    """Singleton notification configuration.

    ``times`` is kept sorted and deduplicated by PreferenceService.
    ``legacy_time`` is the single time stored by installations that predate
    multiple notification times.
    """

    enabled: bool = True
    frequency: Frequency = Frequency.DAILY
    times: list[TimeOfDay] = field(default_factory=lambda: [DEFAULT_TIME])
    legacy_time: TimeOfDay | None = DEFAULT_TIME
    updated_at: str = ""


@dataclass
class CustomReminder:
    """A queued one-off reminder waiting for the running app to pick it up."""

    id: int
    content: str
    fire_at: str                # ISO datetime
    repeats: bool = False
    scheduled: bool = False
    created_at: str = ""
