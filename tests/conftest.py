"""Shared test fixtures and configuration.

Sets fake environment variables before any daily_affirmations imports, and
provides temp-file stores plus an in-memory dispatch facility.
"""

import os

# Patch env vars BEFORE any daily_affirmations imports
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("SEED_SAMPLE_AFFIRMATIONS", "true")
os.environ.setdefault("CUSTOM_REMINDER_DELAY_MINUTES", "60")

import asyncio
import random

import pytest

from daily_affirmations.data.models import Affirmation
from daily_affirmations.ports.reminder_port import DispatchError


class FakeDispatcher:
    """In-memory ReminderDispatchPort that records what it was asked to do."""

    def __init__(self, authorized: bool = True, fail_ids: tuple = ()) -> None:
        self.authorized = authorized
        self.fail_ids = set(fail_ids)
        self.jobs: dict = {}
        self.add_calls: list[str] = []

    async def request_authorization(self) -> bool:
        return self.authorized

    async def add(self, job) -> None:
        self.add_calls.append(job.identifier)
        if job.identifier in self.fail_ids:
            raise DispatchError(f"rejected {job.identifier}")
        self.jobs[job.identifier] = job

    async def pending_identifiers(self) -> list[str]:
        return list(self.jobs)

    async def remove(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            self.jobs.pop(identifier, None)

    async def remove_all(self) -> None:
        self.jobs.clear()


class IdentityRandom(random.Random):
    """Randomness source whose shuffle keeps the original order."""

    def shuffle(self, x) -> None:
        return None


def make_affirmations(*contents: str) -> list[Affirmation]:
    return [
        Affirmation(id=i + 1, content=c, created_at=f"2026-01-01T00:00:0{i}")
        for i, c in enumerate(contents)
    ]


async def settle(tasks) -> list:
    """Wait for registration tasks and let their done-callbacks run."""
    results = await asyncio.gather(*tasks, return_exceptions=True)
    await asyncio.sleep(0)
    return results


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_affirmations.db")


@pytest.fixture
def affirmation_db(tmp_db_path):
    """Return an AffirmationDB instance backed by a temp file."""
    from daily_affirmations.data.db import AffirmationDB
    return AffirmationDB(db_path=tmp_db_path)


@pytest.fixture
def preference_db(tmp_db_path):
    """Return a PreferenceDB instance backed by a temp file."""
    from daily_affirmations.data.db import PreferenceDB
    return PreferenceDB(db_path=tmp_db_path)


@pytest.fixture
def reminder_db(tmp_db_path):
    """Return a CustomReminderDB instance backed by a temp file."""
    from daily_affirmations.data.db import CustomReminderDB
    return CustomReminderDB(db_path=tmp_db_path)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()
