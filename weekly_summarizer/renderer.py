"""Assemble the final review document.

No file I/O is performed here; the workflow writes the returned string
through the vault.
"""

from weekly_summarizer.models import WeekKey


def render_heading(week: WeekKey) -> str:
    return f"# Weekly Summary: Week {week.week}, {week.year}"


def render_single_pass(summary: str, week: WeekKey) -> str:
    """Static heading followed by the model's output."""
    return f"{render_heading(week)}\n\n{summary}\n"


def render_two_pass(review: str) -> str:
    """The final review is written verbatim, links included."""
    return f"{review}\n"
