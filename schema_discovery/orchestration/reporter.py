"""
Progress reporting for the orchestration loop.

The loop narrates what it is doing (step start, assistant response, tool
execution, errors) to a :class:`ProgressReporter`. Reporters never influence
control flow: :func:`safe_report` logs and drops any exception a reporter
raises.
"""

import logging
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Sink for human-readable narration of loop progress."""

    def report(self, text: str) -> None:
        ...


class NullReporter:
    """Discards all narration."""

    def report(self, text: str) -> None:
        pass


class LoggingReporter:
    """Writes narration to a logger."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def report(self, text: str) -> None:
        self.log.log(self.level, "%s", text)


class CallbackReporter:
    """Forwards narration to a callable, e.g. an SSE queue or ``print``."""

    def __init__(self, callback: Callable[[str], None]):
        self.callback = callback

    def report(self, text: str) -> None:
        self.callback(text)


class CollectingReporter:
    """Keeps every narration line in memory."""

    def __init__(self):
        self.lines: list[str] = []

    def report(self, text: str) -> None:
        self.lines.append(text)


def safe_report(reporter: Optional[ProgressReporter], text: str) -> None:
    """Deliver narration, swallowing reporter failures."""
    if reporter is None:
        return
    try:
        reporter.report(text)
    except Exception as e:
        logger.warning("Progress reporter %s failed: %s", type(reporter).__name__, e)
