"""
Daily Affirmations — Record Store.

Affirmations, the notification preference and queued one-off reminders
persist in SQLite across restarts. The scheduler only ever reads snapshots
returned from here.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from daily_affirmations.data.models import (
    AFFIRMATION_CHARACTER_LIMIT,
    DEFAULT_TIME,
    Affirmation,
    CustomReminder,
    Frequency,
    NotificationPreference,
    TimeOfDay,
)

logger = logging.getLogger(__name__)


SAMPLE_AFFIRMATIONS = [
    "I am capable of achieving anything I set my mind to.",
    "I am deserving of love and happiness.",
    "I choose to be positive and radiate positivity.",
    "My potential is limitless, and I can do amazing things.",
    "I am grateful for all the abundance in my life.",
    "I am in control of my thoughts and emotions.",
    "I trust my intuition and make wise decisions.",
    "Every day I am becoming a better version of myself.",
    "I am surrounded by love and support.",
    "I radiate confidence, positivity, and strength.",
]


def validate_content(content: str) -> str:
    """Strip and validate affirmation text. Raises ValueError when invalid."""
    text = content.strip()
    if not text:
        raise ValueError("Affirmation text must not be empty")
    if len(text) > AFFIRMATION_CHARACTER_LIMIT:
        raise ValueError(
            f"Affirmation is {len(text)} characters, "
            f"limit is {AFFIRMATION_CHARACTER_LIMIT}"
        )
    return text


class _SQLiteStore:
    """Connection handling shared by the stores below."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from daily_affirmations.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        raise NotImplementedError


class AffirmationDB(_SQLiteStore):
    """SQLite-backed storage for affirmations."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS affirmations (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    content     TEXT    NOT NULL,
                    is_favorite INTEGER NOT NULL DEFAULT 0,
                    created_at  TEXT    NOT NULL
                )
            """)
        logger.debug("Affirmations table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_affirmation(row: sqlite3.Row) -> Affirmation:
        return Affirmation(
            id=row["id"],
            content=row["content"],
            is_favorite=bool(row["is_favorite"]),
            created_at=row["created_at"],
        )

    def add_affirmation(self, content: str, is_favorite: bool = False) -> Affirmation:
        """Insert a new affirmation. Raises ValueError on empty or too-long text."""
        text = validate_content(content)
        now = datetime.now().isoformat()

        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO affirmations (content, is_favorite, created_at) VALUES (?, ?, ?)",
                (text, int(is_favorite), now),
            )
            affirmation_id = cursor.lastrowid

        logger.info("Affirmation added: #%d", affirmation_id)
        return Affirmation(
            id=affirmation_id,
            content=text,
            is_favorite=is_favorite,
            created_at=now,
        )

    def get_affirmation(self, affirmation_id: int) -> Affirmation | None:
        """Fetch a single affirmation by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM affirmations WHERE id = ?", (affirmation_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_affirmation(row)

    def list_all(self, favorites_only: bool = False) -> list[Affirmation]:
        """List affirmations, newest first."""
        query = "SELECT * FROM affirmations"
        if favorites_only:
            query += " WHERE is_favorite = 1"
        query += " ORDER BY created_at DESC, id DESC"

        with self._connect() as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_affirmation(r) for r in rows]

    def count(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM affirmations").fetchone()
        return row[0]

    def toggle_favorite(self, affirmation_id: int) -> Affirmation:
        """Flip the favorite flag. Raises ValueError if the ID is unknown."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM affirmations WHERE id = ?", (affirmation_id,)
            ).fetchone()
            if row is None:
                raise ValueError(f"Affirmation {affirmation_id} not found")

            new_value = not bool(row["is_favorite"])
            conn.execute(
                "UPDATE affirmations SET is_favorite = ? WHERE id = ?",
                (int(new_value), affirmation_id),
            )

        affirmation = self._row_to_affirmation(row)
        affirmation.is_favorite = new_value
        logger.info("Affirmation #%d favorite=%s", affirmation_id, new_value)
        return affirmation

    def delete_affirmation(self, affirmation_id: int) -> bool:
        """Permanently delete an affirmation by ID."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM affirmations WHERE id = ?", (affirmation_id,),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Affirmation #%d deleted", affirmation_id)
        return deleted

    def seed_samples(self) -> int:
        """Insert the starter affirmations if the store is empty.

        Returns the number of rows inserted (0 when data already exists).
        """
        if self.count() > 0:
            return 0

        now = datetime.now().isoformat()
        with self._connect() as conn:
            conn.executemany(
                "INSERT INTO affirmations (content, is_favorite, created_at) VALUES (?, 0, ?)",
                [(text, now) for text in SAMPLE_AFFIRMATIONS],
            )
        logger.info("Seeded %d sample affirmations", len(SAMPLE_AFFIRMATIONS))
        return len(SAMPLE_AFFIRMATIONS)


class PreferenceDB(_SQLiteStore):
    """SQLite-backed storage for the notification preference singleton.

    The preference row lives in ``notification_settings`` (always id = 1);
    each configured time is a row in ``notification_times``. The ``time``
    column on the settings row holds the legacy single time.
    """

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS notification_settings (
                    id         INTEGER PRIMARY KEY CHECK (id = 1),
                    enabled    INTEGER NOT NULL DEFAULT 1,
                    frequency  TEXT    NOT NULL DEFAULT 'daily',
                    time       TEXT,
                    updated_at TEXT    NOT NULL DEFAULT ''
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS notification_times (
                    id   INTEGER PRIMARY KEY AUTOINCREMENT,
                    time TEXT NOT NULL UNIQUE
                )
            """)
            # Migrate single-time installations: add new columns if missing
            existing_cols = {
                row[1]
                for row in conn.execute("PRAGMA table_info(notification_settings)").fetchall()
            }
            if "updated_at" not in existing_cols:
                conn.execute(
                    "ALTER TABLE notification_settings ADD COLUMN updated_at TEXT NOT NULL DEFAULT ''"
                )
        logger.debug("Notification tables initialized at %s", self._db_path)

    def load(self) -> NotificationPreference | None:
        """Return the stored preference, or None on first run."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM notification_settings WHERE id = 1"
            ).fetchone()
            if row is None:
                return None
            time_rows = conn.execute(
                "SELECT time FROM notification_times ORDER BY time"
            ).fetchall()

        legacy = TimeOfDay.parse(row["time"]) if row["time"] else None
        try:
            frequency = Frequency(row["frequency"])
        except ValueError:
            logger.warning(
                "Unknown stored frequency %r, falling back to daily", row["frequency"],
            )
            frequency = Frequency.DAILY

        return NotificationPreference(
            enabled=bool(row["enabled"]),
            frequency=frequency,
            times=[TimeOfDay.parse(r["time"]) for r in time_rows],
            legacy_time=legacy,
            updated_at=row["updated_at"],
        )

    def save(self, preference: NotificationPreference) -> NotificationPreference:
        """Upsert the singleton and replace every stored time."""
        preference.updated_at = datetime.now().isoformat()
        legacy = str(preference.legacy_time) if preference.legacy_time else None

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO notification_settings (id, enabled, frequency, time, updated_at)
                VALUES (1, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    enabled = excluded.enabled,
                    frequency = excluded.frequency,
                    time = excluded.time,
                    updated_at = excluded.updated_at
                """,
                (
                    int(preference.enabled),
                    preference.frequency.value,
                    legacy,
                    preference.updated_at,
                ),
            )
            conn.execute("DELETE FROM notification_times")
            conn.executemany(
                "INSERT INTO notification_times (time) VALUES (?)",
                [(str(t),) for t in preference.times],
            )

        logger.info(
            "Notification preference saved: enabled=%s frequency=%s times=%s",
            preference.enabled,
            preference.frequency.value,
            ", ".join(str(t) for t in preference.times) or "-",
        )
        return preference

    def create_default(self) -> NotificationPreference:
        """Persist and return the first-run default (daily at 08:00)."""
        return self.save(
            NotificationPreference(
                enabled=True,
                frequency=Frequency.DAILY,
                times=[DEFAULT_TIME],
                legacy_time=DEFAULT_TIME,
            )
        )


class CustomReminderDB(_SQLiteStore):
    """Queue of one-off reminders requested while the app is not running."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS custom_reminders (
                    id         INTEGER PRIMARY KEY AUTOINCREMENT,
                    content    TEXT    NOT NULL,
                    fire_at    TEXT    NOT NULL,
                    repeats    INTEGER NOT NULL DEFAULT 0,
                    scheduled  INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT    NOT NULL
                )
            """)
        logger.debug("Custom reminders table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_reminder(row: sqlite3.Row) -> CustomReminder:
        return CustomReminder(
            id=row["id"],
            content=row["content"],
            fire_at=row["fire_at"],
            repeats=bool(row["repeats"]),
            scheduled=bool(row["scheduled"]),
            created_at=row["created_at"],
        )

    def enqueue(self, content: str, fire_at: datetime, repeats: bool = False) -> CustomReminder:
        """Queue a reminder for the running app to register."""
        text = validate_content(content)
        now = datetime.now().isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO custom_reminders (content, fire_at, repeats, scheduled, created_at)
                VALUES (?, ?, ?, 0, ?)
                """,
                (text, fire_at.isoformat(), int(repeats), now),
            )
            reminder_id = cursor.lastrowid

        logger.info("Custom reminder #%d queued for %s", reminder_id, fire_at.isoformat())
        return CustomReminder(
            id=reminder_id,
            content=text,
            fire_at=fire_at.isoformat(),
            repeats=repeats,
            scheduled=False,
            created_at=now,
        )

    def list_unscheduled(self) -> list[CustomReminder]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM custom_reminders WHERE scheduled = 0 ORDER BY fire_at"
            ).fetchall()
        return [self._row_to_reminder(r) for r in rows]

    def mark_scheduled(self, reminder_id: int) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE custom_reminders SET scheduled = 1 WHERE id = ?", (reminder_id,),
            )
        logger.debug("Custom reminder #%d handed to dispatcher", reminder_id)

    def list_pending(self, now: datetime) -> list[CustomReminder]:
        """Handed-over reminders that can still fire after ``now``.

        The dispatcher keeps jobs in memory only, so these are re-registered
        when the app starts.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM custom_reminders
                WHERE scheduled = 1 AND (repeats = 1 OR fire_at > ?)
                ORDER BY fire_at
                """,
                (now.isoformat(),),
            ).fetchall()
        return [self._row_to_reminder(r) for r in rows]
