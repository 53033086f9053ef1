from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def log(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...


class LogNotifier:
    """Collects progress lines and warnings and mirrors them to `logging`."""

    def __init__(self, on_log: Callable[[str], None] | None = None) -> None:
        self.lines: list[str] = []
        self.warnings: list[str] = []
        self._on_log = on_log

    def log(self, message: str) -> None:
        self.lines.append(message)
        logger.info(message)
        if self._on_log is not None:
            self._on_log(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)


def safe_log(notifier: Notifier, message: str) -> None:
    try:
        notifier.log(message)
    except Exception as e:
        logger.warning(f"Notifier log failed: {e!r}")


def safe_warn(notifier: Notifier, message: str) -> None:
    try:
        notifier.warn(message)
    except Exception as e:
        logger.warning(f"Notifier warn failed: {e!r}")
