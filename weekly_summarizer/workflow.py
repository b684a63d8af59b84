"""Weekly review orchestration: one run produces at most one document.

Steps
-----
1. Compute the ISO week of "now" (the clock is injected).
2. Render the output path from the settings template and folder.
3. If that document already exists, notify and stop: no inference, no write.
   If it could never be written (outside the vault, or a folder), fail now.
4. Enumerate the vault's notes and summarize them, one at a time:

   * **two-pass**: a one-or-two sentence summary per note, then one final
     request for a two-paragraph review linking every note (N + 1 calls);
   * **single-pass**: one request over the concatenated notes, with a static
     heading prepended to the reply.

5. Create the output document.

Failures are contained at the smallest unit: an unreadable note is logged and
skipped, a failed inference call yields fallback text.  Only a failed write
ends the run as ``failed``.
"""

import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable

from tqdm.auto import tqdm

from weekly_summarizer.llm import NO_REVIEW, REVIEW_ERROR, ChatClient, summarize
from weekly_summarizer.log import run_context
from weekly_summarizer.models import (
    Document,
    DocumentSummary,
    RunResult,
    RunStatus,
    Settings,
    VaultError,
    WeekKey,
)
from weekly_summarizer.prompts import (
    build_combined_prompt,
    build_final_review_prompt,
    build_short_summary_prompt,
)
from weekly_summarizer.renderer import render_single_pass, render_two_pass
from weekly_summarizer.vault import Vault, render_output_path

logger = logging.getLogger(__name__)

Clock = Callable[[], date]
Notifier = Callable[[str], None]

WRITE_FAILED = "Failed to write weekly summary."


def iso_week(moment: date) -> WeekKey:
    """Return the ISO-8601 week number and ISO year of ``moment``.

    Weeks start on Monday; the ISO year can differ from the calendar year in
    the first and last days of a year (2024-12-30 is week 1 of 2025).
    """
    year, week, _ = moment.isocalendar()
    return WeekKey(week=week, year=year)


# ---------------------------------------------------------------------------
# Workflow contract
# ---------------------------------------------------------------------------


class Workflow(ABC):
    """A user-triggered, argument-less action."""

    @abstractmethod
    def run(self) -> RunResult:
        """Execute the action to completion and report the outcome."""


@dataclass
class _Tally:
    read: int = 0
    failed: int = 0
    calls: int = 0


class WeeklySummaryWorkflow(Workflow):
    """Generate the review for the current ISO week.

    Attributes:
        settings: Configuration for this run; never mutated.
        vault:    Source of notes and destination of the review.
        client:   Chat client used for every inference call.
        clock:    Returns "now"; defaults to ``datetime.now``.
        notify:   Receives the one-line user-facing messages.
    """

    def __init__(
        self,
        settings: Settings,
        vault: Vault,
        client: ChatClient,
        clock: Clock = datetime.now,
        notify: Notifier | None = None,
    ) -> None:
        self.settings = settings
        self.vault = vault
        self.client = client
        self.clock = clock
        self.notify = notify or logger.info

    def run(self) -> RunResult:
        key = iso_week(self.clock())
        with run_context(key):
            return self._run(key)

    def _run(self, key: WeekKey) -> RunResult:
        output_path = render_output_path(
            self.settings.output_path_template, self.settings.output_folder, key
        )
        logger.info(
            "Weekly summary  week=%d  year=%d  mode=%s  output=%s",
            key.week,
            key.year,
            self.settings.mode,
            output_path,
        )

        if self.vault.exists(output_path):
            message = (
                f"Weekly summary for week {key.week} already exists. No action taken."
            )
            return self._finish("skipped", key, output_path, _Tally(), message)

        try:
            self.vault.check_writable(output_path)
        except VaultError as exc:
            logger.error("Error writing summary: %s", exc)
            return self._finish("failed", key, output_path, _Tally(), WRITE_FAILED)

        paths = self.vault.markdown_files()
        logger.info("Discovered markdown documents: %d", len(paths))

        tally = _Tally()
        if self.settings.mode == "single-pass":
            text = self._single_pass(paths, key, tally)
        else:
            text = self._two_pass(paths, key, tally)

        logger.info(
            "Documents read: %d, failed: %d, inference calls: %d",
            tally.read,
            tally.failed,
            tally.calls,
        )

        try:
            written = self.vault.create(output_path, text)
        except VaultError as exc:
            logger.error("Error writing summary: %s", exc)
            return self._finish("failed", key, output_path, tally, WRITE_FAILED)

        logger.info("Written: %s", written)
        message = f"Weekly summary for week {key.week} generated successfully!"
        return self._finish("written", key, output_path, tally, message)

    def _finish(
        self,
        status: RunStatus,
        key: WeekKey,
        output_path: str,
        tally: _Tally,
        message: str,
    ) -> RunResult:
        self.notify(message)
        return RunResult(
            status=status,
            week=key.week,
            year=key.year,
            output_path=output_path,
            documents_read=tally.read,
            documents_failed=tally.failed,
            inference_calls=tally.calls,
            message=message,
        )

    # -----------------------------------------------------------------------
    # Variants
    # -----------------------------------------------------------------------

    def _two_pass(self, paths: list[str], key: WeekKey, tally: _Tally) -> str:
        summaries: list[DocumentSummary] = []
        for path in self._progress(paths, "Summarize"):
            document = self._read(path, tally)
            if document is None:
                continue
            tally.calls += 1
            short = summarize(self.client, build_short_summary_prompt(document.content))
            logger.debug("Summary of %s: %s", path, short)
            summaries.append(DocumentSummary(path=path, summary=short))

        tally.calls += 1
        review = summarize(
            self.client,
            build_final_review_prompt(summaries, key.week),
            fallback=NO_REVIEW,
            error_fallback=REVIEW_ERROR,
        )
        return render_two_pass(review)

    def _single_pass(self, paths: list[str], key: WeekKey, tally: _Tally) -> str:
        documents: list[Document] = []
        for path in self._progress(paths, "Read"):
            document = self._read(path, tally)
            if document is not None:
                documents.append(document)

        tally.calls += 1
        summary = summarize(self.client, build_combined_prompt(documents, key.week))
        return render_single_pass(summary, key)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _read(self, path: str, tally: _Tally) -> Document | None:
        try:
            content = self.vault.read(path)
        except VaultError as exc:
            logger.error("Error reading %s: %s", path, exc.cause)
            tally.failed += 1
            return None
        tally.read += 1
        return Document(path=path, content=content)

    @staticmethod
    def _progress(paths: list[str], desc: str):
        return tqdm(
            paths,
            total=len(paths),
            desc=desc,
            unit="doc",
            disable=not sys.stderr.isatty(),
            leave=False,
        )
