"""
Daily Affirmations — Notification Preference Model.

Holds the desired notification configuration and enforces its invariants
before anything reaches the record store: at least one time when enabled,
at most MAX_DAILY_NOTIFICATIONS times, sorted ascending, no duplicates.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from daily_affirmations.data.models import (
    DEFAULT_TIME,
    MAX_DAILY_NOTIFICATIONS,
    Frequency,
    NotificationPreference,
    TimeOfDay,
)

if TYPE_CHECKING:
    from daily_affirmations.data.db import PreferenceDB

logger = logging.getLogger(__name__)


def _coerce_time(value: TimeOfDay | str) -> TimeOfDay:
    if isinstance(value, TimeOfDay):
        return value
    return TimeOfDay.parse(value)


def normalize_times(
    times: Iterable[TimeOfDay | str],
    enabled: bool,
    legacy_time: TimeOfDay | None = None,
) -> list[TimeOfDay]:
    """Deduplicate, sort and cap a list of times.

    When enabled and nothing is left, fall back to the legacy time or 08:00.
    Raises ValueError on a malformed "HH:MM" string.
    """
    normalized = sorted({_coerce_time(t) for t in times})

    if len(normalized) > MAX_DAILY_NOTIFICATIONS:
        dropped = normalized[MAX_DAILY_NOTIFICATIONS:]
        logger.warning(
            "Only %d notification times allowed, dropping %s",
            MAX_DAILY_NOTIFICATIONS,
            ", ".join(str(t) for t in dropped),
        )
        normalized = normalized[:MAX_DAILY_NOTIFICATIONS]

    if enabled and not normalized:
        normalized = [legacy_time or DEFAULT_TIME]

    return normalized


def effective_times(preference: NotificationPreference) -> list[TimeOfDay]:
    """Times the scheduler should use for this preference."""
    if not preference.enabled:
        return []
    return normalize_times(preference.times, True, preference.legacy_time)


class PreferenceService:
    """Load and update the notification preference singleton."""

    def __init__(self, store: PreferenceDB) -> None:
        self._store = store

    def load(self) -> NotificationPreference:
        """Return the stored preference, creating the default on first run."""
        preference = self._store.load()
        if preference is None:
            logger.info("No notification preference found, creating default")
            return self._store.create_default()
        return preference

    def update(
        self,
        enabled: bool,
        frequency: Frequency | str,
        times: Iterable[TimeOfDay | str],
    ) -> NotificationPreference:
        """Validate and persist a new preference, replacing the stored times.

        Raises ValueError for an unknown frequency or malformed time.
        """
        try:
            freq = Frequency(frequency)
        except ValueError:
            raise ValueError(
                f"Unknown frequency {frequency!r}; "
                f"expected one of {', '.join(f.value for f in Frequency)}"
            ) from None

        current = self._store.load()
        legacy = current.legacy_time if current is not None else None

        preference = NotificationPreference(
            enabled=enabled,
            frequency=freq,
            times=normalize_times(times, enabled, legacy),
            legacy_time=legacy,
        )
        return self._store.save(preference)
