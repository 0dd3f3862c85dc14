"""Reminder dispatch port — abstract interface for registering local reminders.

Core modules depend on this protocol, never on a specific scheduler backend.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from daily_affirmations.core.reminder_builder import ReminderJob


class DispatchError(Exception):
    """Raised when the dispatch facility cannot register or revoke a reminder."""


class ReminderDispatchPort(Protocol):
    """Abstract reminder dispatch interface used by core modules."""

    async def request_authorization(self) -> bool: ...

    async def add(self, job: ReminderJob) -> None: ...

    async def pending_identifiers(self) -> list[str]: ...

    async def remove(self, identifiers: list[str]) -> None: ...

    async def remove_all(self) -> None: ...
