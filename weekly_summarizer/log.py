"""Logging for the weekly-summary CLI.

``setup_logging`` configures the ``"weekly_summarizer"`` package logger once
from ``cli.main()``; every other module uses ``logging.getLogger(__name__)``.

Records are tagged with the ISO week being generated.  ``WeeklySummaryWorkflow``
enters ``run_context(key)`` for the length of a run, and ``RunContextFilter``
copies the tag onto each record as ``%(run)s`` (``"-"`` outside a run), so a
log file shared by several runs can be split by week::

    10:42:07  INFO    [2024-W01] weekly_summarizer.workflow: Discovered markdown documents: 12
"""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator

from weekly_summarizer.models import WeekKey

PACKAGE_LOGGER = "weekly_summarizer"
NO_RUN = "-"

_FMT = "%(asctime)s  %(levelname)-7s [%(run)s] %(name)s: %(message)s"
_DATE = "%H:%M:%S"

_current_run: ContextVar[str] = ContextVar("weekly_summarizer_run", default=NO_RUN)


def run_tag(key: WeekKey) -> str:
    """ISO week-date label for ``key``, e.g. ``2024-W01``."""
    return f"{key.year}-W{key.week:02d}"


@contextmanager
def run_context(key: WeekKey) -> Iterator[str]:
    """Tag every record logged inside the block with ``run_tag(key)``."""
    tag = run_tag(key)
    token = _current_run.set(tag)
    try:
        yield tag
    finally:
        _current_run.reset(token)


class RunContextFilter(logging.Filter):
    """Set ``record.run`` from the active run context; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run = _current_run.get()
        return True


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure the package logger for a CLI session.

    Args:
        verbose:  DEBUG instead of INFO (per-note summaries, prompt sizes).
        log_file: Also append records here; parent folders are created.

    A second call replaces (and closes) the handlers of the first.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    fmt = logging.Formatter(_FMT, datefmt=_DATE)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(fmt)
        handler.addFilter(RunContextFilter())
        logger.addHandler(handler)
