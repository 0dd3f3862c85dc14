"""Notification port — abstract interface for showing a reminder to the user.

Dispatch adapters call this when a reminder fires; delivery is always local.
"""

from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Abstract notification interface used by dispatch adapters."""

    async def send_message(self, title: str, body: str) -> None: ...
