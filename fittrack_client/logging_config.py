"""Console logging setup and per-category failure tracking for the client."""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from collections import Counter, deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TextIO

import colorlog

from .constants import (
    ERROR_HISTORY_PER_CATEGORY,
    ERROR_SUMMARY_WINDOW_SECONDS,
    LOG_LEVEL_ENV,
)

HANDLER_NAME = "fittrack-console"

# Third-party loggers that only matter when debugging them directly.
QUIET_LOGGERS = ("aiohttp",)

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True)
class ErrorRecord:
    category: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)
    at: float = 0.0


@dataclass(frozen=True)
class CategorySummary:
    total: int
    recent: int
    last: ErrorRecord | None


class ErrorAggregator:
    """Counts failures per category and keeps a bounded tail of each.

    The running total counts every occurrence; only the newest
    ``history_size`` records per category are retained for the report.
    """

    def __init__(
        self,
        history_size: int = ERROR_HISTORY_PER_CATEGORY,
        window_seconds: float = ERROR_SUMMARY_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.history_size = max(1, history_size)
        self.window_seconds = window_seconds
        self._clock = clock
        self._totals: Counter[str] = Counter()
        self._history: dict[str, deque[ErrorRecord]] = {}
        self._lock = threading.Lock()

    def record(
        self, category: str, message: str, context: Mapping[str, Any] | None = None
    ) -> ErrorRecord:
        entry = ErrorRecord(category, message, dict(context or {}), self._clock())
        with self._lock:
            self._totals[category] += 1
            history = self._history.setdefault(category, deque(maxlen=self.history_size))
            history.append(entry)
        return entry

    def summary(self) -> dict[str, CategorySummary]:
        cutoff = self._clock() - self.window_seconds
        with self._lock:
            return {
                category: CategorySummary(
                    total=self._totals[category],
                    recent=sum(1 for entry in history if entry.at >= cutoff),
                    last=history[-1] if history else None,
                )
                for category, history in self._history.items()
            }

    def history(self, category: str) -> list[ErrorRecord]:
        with self._lock:
            return list(self._history.get(category, ()))

    def reset(self) -> None:
        with self._lock:
            self._totals.clear()
            self._history.clear()

    def log_report(self) -> None:
        """Log one line per category, most frequent first."""
        summary = self.summary()
        if not summary:
            logging.debug("No failures recorded this session")
            return
        window = int(self.window_seconds // 60)
        logging.warning(f"📊 Failure summary categories={len(summary)}")
        for category, stats in sorted(summary.items(), key=lambda item: -item[1].total):
            last = stats.last.message if stats.last else "-"
            logging.warning(
                f"  {category}: total={stats.total} last_{window}m={stats.recent} last_error={last}"
            )


error_aggregator = ErrorAggregator()


def format_error_line(
    category: str,
    message: str,
    error: BaseException | None = None,
    context: Mapping[str, Any] | None = None,
) -> str:
    line = f"[{category}] {message}"
    if error is not None:
        line += f" ({type(error).__name__}: {error})"
    if context:
        line += " " + " ".join(f"{key}={value}" for key, value in context.items())
    return line


def log_structured_error(
    category: str,
    message: str,
    *,
    error: BaseException | None = None,
    context: Mapping[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log a categorized failure and count it towards the shutdown report."""
    logging.log(level, format_error_line(category, message, error, context))
    error_aggregator.record(category, message, context)


def resolve_log_level(debug: bool = False, env: Mapping[str, str] | None = None) -> int:
    """Pick the root level from the CLI flag and the environment.

    ``FITTRACK_LOG_LEVEL`` (a level name) wins; otherwise the ``--debug`` flag
    or a truthy ``DEBUG`` variable selects DEBUG, and INFO is the default.
    """
    env = os.environ if env is None else env
    named = env.get(LOG_LEVEL_ENV, "").strip().upper()
    if named:
        level = logging.getLevelName(named)
        if isinstance(level, int):
            return level
        print(f"Warning: Unknown log level {LOG_LEVEL_ENV}='{named}', ignoring")
    if debug or env.get("DEBUG", "").strip().lower() in _TRUTHY:
        return logging.DEBUG
    return logging.INFO


def build_formatter() -> colorlog.ColoredFormatter:
    return colorlog.ColoredFormatter(
        "%(log_color)s%(asctime)s %(levelname).1s%(reset)s %(message)s",
        datefmt="%H:%M:%S",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "bold_red",
        },
    )


def configure_logging(debug: bool = False, stream: TextIO | None = None) -> int:
    """Install the colored console handler on the root logger.

    Calling it again replaces the handler it installed earlier instead of
    stacking a second one.

    Returns:
        The level applied to the root logger.
    """
    level = resolve_log_level(debug)
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(build_formatter())
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return level
