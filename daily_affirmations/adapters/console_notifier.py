"""Console notification adapter — implements NotificationPort.

Shows a fired reminder on the terminal running the app and in the log.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """Terminal implementation of NotificationPort."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    async def send_message(self, title: str, body: str) -> None:
        logger.info("Reminder fired: %s", title)
        print(f"\n🔔 {title}\n   {body}\n", file=self._stream, flush=True)
