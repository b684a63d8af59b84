"""Tests for weekly_summarizer/log.py: handlers and run-context tagging."""

import logging

import pytest

from weekly_summarizer.log import (
    NO_RUN,
    RunContextFilter,
    run_context,
    run_tag,
    setup_logging,
)
from weekly_summarizer.models import WeekKey
from weekly_summarizer.workflow import WeeklySummaryWorkflow

# Logger state is reset between tests by conftest._reset_package_logger.

WEEK_1 = WeekKey(week=1, year=2024)


def _logger():
    return logging.getLogger("weekly_summarizer")


# ---------------------------------------------------------------------------
# run_tag / run_context
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "week, year, expected", [(1, 2024, "2024-W01"), (53, 2020, "2020-W53")]
)
def test_run_tag_is_iso_week_date(week, year, expected):
    assert run_tag(WeekKey(week=week, year=year)) == expected


def _stamp() -> str:
    record = logging.LogRecord("weekly_summarizer", logging.INFO, __file__, 1, "m", None, None)
    assert RunContextFilter().filter(record) is True
    return record.run


def test_filter_outside_run_uses_placeholder():
    assert _stamp() == NO_RUN


def test_run_context_sets_and_restores_tag():
    with run_context(WEEK_1) as tag:
        assert tag == "2024-W01"
        assert _stamp() == "2024-W01"
        with run_context(WeekKey(week=2, year=2024)):
            assert _stamp() == "2024-W02"
        assert _stamp() == "2024-W01"
    assert _stamp() == NO_RUN


def test_run_context_restores_tag_after_error():
    with pytest.raises(RuntimeError), run_context(WEEK_1):
        raise RuntimeError("boom")
    assert _stamp() == NO_RUN


# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("verbose, level", [(False, logging.INFO), (True, logging.DEBUG)])
def test_setup_logging_level(verbose, level):
    setup_logging(verbose=verbose)
    assert _logger().level == level
    assert _logger().propagate is False


def test_setup_logging_replaces_previous_handlers(tmp_path):
    setup_logging(log_file=tmp_path / "first.log")
    first = _logger().handlers[:]
    setup_logging()
    assert len(_logger().handlers) == 1
    assert not set(first) & set(_logger().handlers)


def test_every_handler_tags_records(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    setup_logging(log_file=log_file)
    handlers = _logger().handlers
    assert len(handlers) == 2
    assert all(
        any(isinstance(f, RunContextFilter) for f in h.filters) for h in handlers
    )
    assert log_file.parent.is_dir()


def test_lines_show_run_tag(capsys):
    setup_logging()
    child = logging.getLogger("weekly_summarizer.workflow")
    child.info("before")
    with run_context(WEEK_1):
        child.info("during")

    before, during = capsys.readouterr().err.splitlines()
    assert "[-] weekly_summarizer.workflow: before" in before
    assert "[2024-W01] weekly_summarizer.workflow: during" in during


def test_workflow_run_is_tagged_in_log_file(tmp_path, settings, vault, echo_client, clock):
    log_file = tmp_path / "run.log"
    setup_logging(log_file=log_file)

    WeeklySummaryWorkflow(settings, vault, echo_client, clock=clock).run()
    _logger().info("after run")

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert lines[-1].endswith("[-] weekly_summarizer: after run")
    run_lines = lines[:-1]
    assert run_lines
    assert all("[2024-W01]" in line for line in run_lines)
