"""
Daily Affirmations — command-line front end.

Usage:
    daily-affirmations add TEXT [--remind-at WHEN]   Save a new affirmation
    daily-affirmations list [--favorites]            Show saved affirmations
    daily-affirmations favorite ID                   Toggle favorite
    daily-affirmations delete ID                     Delete an affirmation
    daily-affirmations remind ID                     Remind me about this one later
    daily-affirmations settings show                 Show notification settings
    daily-affirmations settings set [options]        Change notification settings
    daily-affirmations run                           Deliver reminders until Ctrl+C

Every command except ``run`` only touches the record store. A running
``run`` process notices the change and reschedules.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sqlite3
import sys
from datetime import datetime, timedelta

from daily_affirmations.config import settings
from daily_affirmations.data.models import (
    AFFIRMATION_CHARACTER_LIMIT,
    MAX_DAILY_NOTIFICATIONS,
    Frequency,
    TimeOfDay,
)

logger = logging.getLogger(__name__)

_FREQUENCY_NAMES = {
    Frequency.DAILY: "Daily",
    Frequency.WEEKDAYS: "Weekdays Only",
    Frequency.WEEKLY: "Weekly",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_when(raw: str, now: datetime) -> datetime:
    """Parse an ISO datetime, or "HH:MM" meaning the next occurrence of that time."""
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        pass

    time = TimeOfDay.parse(raw)
    candidate = now.replace(hour=time.hour, minute=time.minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_add(app, args: argparse.Namespace) -> int:
    affirmation = app.affirmations.add_affirmation(args.text)
    print(f"Saved #{affirmation.id}: {affirmation.content}")

    if args.remind_at:
        fire_at = parse_when(args.remind_at, app.now())
        app.reminders.enqueue(affirmation.content, fire_at)
        print(f"Reminder queued for {fire_at:%Y-%m-%d %H:%M}")
    return 0


def cmd_list(app, args: argparse.Namespace) -> int:
    affirmations = app.affirmations.list_all(favorites_only=args.favorites)
    if not affirmations:
        print("No affirmations yet. Add one with: daily-affirmations add \"...\"")
        return 0
    for a in affirmations:
        star = "★" if a.is_favorite else " "
        print(f"{a.id:>4} {star} {a.content}")
    return 0


def cmd_favorite(app, args: argparse.Namespace) -> int:
    affirmation = app.affirmations.toggle_favorite(args.id)
    state = "added to" if affirmation.is_favorite else "removed from"
    print(f"#{affirmation.id} {state} favorites")
    return 0


def cmd_delete(app, args: argparse.Namespace) -> int:
    if not app.affirmations.delete_affirmation(args.id):
        print(f"Affirmation #{args.id} not found", file=sys.stderr)
        return 1
    print(f"Deleted #{args.id}")
    return 0


def cmd_remind(app, args: argparse.Namespace) -> int:
    reminder = app.remind_later(args.id)
    print(f"Reminder queued for {datetime.fromisoformat(reminder.fire_at):%Y-%m-%d %H:%M}")
    return 0


def cmd_settings_show(app, args: argparse.Namespace) -> int:
    from daily_affirmations.core.preferences import effective_times

    pref = app.preferences.load()
    print(f"Notifications: {'enabled' if pref.enabled else 'disabled'}")
    print(f"Frequency:     {_FREQUENCY_NAMES[pref.frequency]}")
    times = effective_times(pref) or pref.times
    print(f"Times:         {', '.join(str(t) for t in times) or '-'}")
    return 0


def cmd_settings_set(app, args: argparse.Namespace) -> int:
    current = app.preferences.load()
    enabled = current.enabled if args.enabled is None else args.enabled
    frequency = args.frequency or current.frequency
    if args.clear_times:
        times = []
    elif args.times:
        times = args.times
    else:
        times = current.times

    pref = app.preferences.update(enabled, frequency, times)
    print(
        f"Settings saved: {'enabled' if pref.enabled else 'disabled'}, "
        f"{_FREQUENCY_NAMES[pref.frequency]}, "
        f"{', '.join(str(t) for t in pref.times) or '-'}"
    )
    print(f"A running app applies this within {settings.SYNC_INTERVAL_SECONDS}s.")
    return 0


def cmd_run(app, args: argparse.Namespace) -> int:
    logger.info("Starting Daily Affirmations reminders...")
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        print("\nStopped.")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daily-affirmations",
        description="Save affirmations and get reminded of them.",
    )
    parser.add_argument("--db", help="SQLite database path (overrides DATABASE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="save a new affirmation")
    p.add_argument("text", help=f"affirmation text (max {AFFIRMATION_CHARACTER_LIMIT} chars)")
    p.add_argument("--remind-at", help="also remind me once at ISO datetime or HH:MM")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("list", help="show saved affirmations, newest first")
    p.add_argument("--favorites", action="store_true", help="only favorites")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("favorite", help="toggle favorite")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_favorite)

    p = sub.add_parser("delete", help="delete an affirmation")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser(
        "remind",
        help=f"remind me about one affirmation in {settings.CUSTOM_REMINDER_DELAY_MINUTES} minutes",
    )
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_remind)

    p = sub.add_parser("settings", help="notification settings")
    settings_sub = p.add_subparsers(dest="settings_command", required=True)

    s = settings_sub.add_parser("show", help="show current settings")
    s.set_defaults(func=cmd_settings_show)

    s = settings_sub.add_parser("set", help="change settings")
    toggle = s.add_mutually_exclusive_group()
    toggle.add_argument("--enable", dest="enabled", action="store_true", default=None)
    toggle.add_argument("--disable", dest="enabled", action="store_false")
    s.add_argument("--frequency", choices=[f.value for f in Frequency])
    times = s.add_mutually_exclusive_group()
    times.add_argument(
        "--time", dest="times", action="append", metavar="HH:MM",
        help=f"notification time, repeat for several (max {MAX_DAILY_NOTIFICATIONS})",
    )
    times.add_argument("--clear-times", action="store_true", help="remove all times")
    s.set_defaults(func=cmd_settings_set, enabled=None)

    p = sub.add_parser("run", help="deliver reminders until interrupted")
    p.set_defaults(func=cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse arguments, build the app, dispatch the command."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    from daily_affirmations.app import build_app

    try:
        app = build_app(db_path=args.db)
    except sqlite3.Error as exc:
        logger.critical("Could not open the database: %s", exc)
        return 1

    try:
        return args.func(app, args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except sqlite3.Error as exc:
        logger.error("Database error: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
