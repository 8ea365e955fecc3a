# clinic_console/services/notifications.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from clinic_console.core.errors import ApiConnectionError, ApiError

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
INFO = "info"

_LOG_LEVELS = {SUCCESS: logging.INFO, INFO: logging.INFO, ERROR: logging.WARNING}


@dataclass(frozen=True)
class Toast:
    level: str
    message: str


class Notifier:
    """Collects user-facing toasts; an optional sink renders them as they arrive."""

    def __init__(self, sink: Optional[Callable[[Toast], None]] = None) -> None:
        self.toasts: List[Toast] = []
        self.sink = sink

    def _push(self, level: str, message: str) -> Toast:
        toast = Toast(level, message)
        self.toasts.append(toast)
        logger.log(_LOG_LEVELS.get(level, logging.INFO), "[toast:%s] %s", level, message)
        if self.sink:
            self.sink(toast)
        return toast

    def success(self, message: str) -> Toast:
        return self._push(SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self._push(ERROR, message)

    def info(self, message: str) -> Toast:
        return self._push(INFO, message)

    def of_level(self, level: str) -> List[Toast]:
        return [t for t in self.toasts if t.level == level]

    def clear(self) -> None:
        self.toasts.clear()


def error_message(exc: BaseException, fallback: str) -> str:
    if isinstance(exc, ApiError):
        fields = exc.field_errors()
        return exc.message or (next(iter(fields.values())) if fields else fallback)
    if isinstance(exc, ApiConnectionError):
        return f"{fallback} (backend unreachable)"
    return fallback
