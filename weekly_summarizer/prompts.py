"""LLM prompt builders.

Every prompt is self-contained and sent as a single user message, so each
call is stateless.
"""

from typing import Sequence

from weekly_summarizer.models import Document, DocumentSummary

DOCUMENT_SEPARATOR = "\n\n---\n\n"


def build_short_summary_prompt(text: str) -> str:
    """Prompt for the first pass: one note in one or two sentences."""
    return (
        "Please summarize the following content in one or two concise sentences:"
        f"\n\n{text}"
    )


def format_summary_links(summaries: Sequence[DocumentSummary]) -> str:
    """Render first-pass summaries as a bullet list linking each note.

    Example line: ``- Did X. ([Link to document](Projects/alpha.md))``

    Whitespace inside a summary is collapsed so each note stays one bullet.
    """
    return "\n".join(
        f"- {' '.join(item.summary.split())} ([Link to document]({item.path}))"
        for item in summaries
    )


def build_final_review_prompt(summaries: Sequence[DocumentSummary], week: int) -> str:
    """Prompt for the second pass: a two-paragraph review of the week.

    Args:
        summaries: First-pass summaries in vault order.
        week:      ISO week number the review covers.
    """
    content_with_links = format_summary_links(summaries)
    return f"""\
Based on the following content, write a two-paragraph weekly review for week {week}.
Focus on what was worked on, what was completed, what still needs attention, and any recurring themes or notable patterns.
Include relevant links in Markdown format where applicable (links should have this structure [[link]], no escape characters).

Content with links:

{content_with_links}"""


def build_combined_prompt(documents: Sequence[Document], week: int) -> str:
    """Prompt for a single-pass run over the raw content of every note."""
    combined = DOCUMENT_SEPARATOR.join(doc.content for doc in documents)
    return f"""\
The following are my notes from week {week}, separated by horizontal rules.
Write a concise weekly review: what was worked on, what was completed, what still needs attention, and any recurring themes.

Notes:

{combined}"""
