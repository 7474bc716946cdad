from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"

_LOG_LEVELS = {SUCCESS: logging.INFO, INFO: logging.INFO, ERROR: logging.WARNING}


@dataclass
class Notification:
    level: str
    message: str
    created_at: datetime = field(default_factory=datetime.now)


class Notifier:
    """User-facing toast channel. Everything shown to the user is also logged."""

    def __init__(self):
        self.history: List[Notification] = []

    def notify(self, level: str, message: str) -> Notification:
        note = Notification(level, message)
        self.history.append(note)
        logger.log(_LOG_LEVELS.get(level, logging.INFO), message)
        return note

    def success(self, message: str) -> Notification:
        return self.notify(SUCCESS, message)

    def error(self, message: str) -> Notification:
        return self.notify(ERROR, message)

    def info(self, message: str) -> Notification:
        return self.notify(INFO, message)

    def drain(self) -> List[Notification]:
        """Return and forget pending notifications."""
        pending, self.history = self.history, []
        return pending

    @property
    def messages(self) -> List[str]:
        return [n.message for n in self.history]
