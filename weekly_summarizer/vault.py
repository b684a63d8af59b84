"""Vault access: enumerate, read and create markdown documents.

All paths crossing this module's boundary are vault-relative POSIX strings
(``"Projects/alpha.md"``), which are also what the review links to.
"""

import logging
from pathlib import Path

from weekly_summarizer.models import (
    WEEK_NUMBER_TOKEN,
    YEAR_TOKEN,
    VaultError,
    WeekKey,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Output path
# ---------------------------------------------------------------------------


def render_file_name(template: str, week: WeekKey) -> str:
    """Substitute ``%WEEK_NUMBER%`` and ``%YEAR%`` in ``template``.

    Each placeholder is replaced independently, every occurrence.  Any other
    ``%...%`` token is left verbatim.
    """
    return template.replace(WEEK_NUMBER_TOKEN, str(week.week)).replace(
        YEAR_TOKEN, str(week.year)
    )


def render_output_path(template: str, folder: str, week: WeekKey) -> str:
    """Return the vault-relative path of the review for ``week``.

    ``folder`` is joined in front of the rendered file name; ``"/"`` and
    ``""`` both mean the vault root.

    Example:
        >>> render_output_path("Week %WEEK_NUMBER%.md", "Reviews/", WeekKey(week=7, year=2024))
        'Reviews/Week 7.md'
    """
    file_name = render_file_name(template, week).lstrip("/")
    folder = folder.strip().strip("/")
    if not folder:
        return file_name
    return f"{folder}/{file_name}"


# ---------------------------------------------------------------------------
# Vault
# ---------------------------------------------------------------------------


class Vault:
    """A directory of markdown notes.

    Hidden directories (``.obsidian``, ``.git``, the settings folder) are not
    part of the vault's documents.

    Attributes:
        root: Vault root directory.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def markdown_files(self) -> list[str]:
        """Return vault-relative paths of every ``.md`` note, sorted."""
        paths: list[str] = []
        for path in self.root.rglob("*.md"):
            rel = path.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if path.is_file():
                paths.append(rel.as_posix())
        return sorted(paths)

    def exists(self, rel_path: str) -> bool:
        try:
            return self._resolve(rel_path).is_file()
        except VaultError:
            return False

    def check_writable(self, rel_path: str) -> None:
        """Fail early if ``rel_path`` could never be created in this vault.

        Raises:
            VaultError: if the path escapes the vault root or names a directory.
        """
        path = self._resolve(rel_path)
        if path.is_dir():
            raise VaultError(rel_path, IsADirectoryError("path is a directory"))

    def read(self, rel_path: str) -> str:
        """Return the UTF-8 content of a note.

        Raises:
            VaultError: if the file cannot be read or decoded.
        """
        try:
            return self._resolve(rel_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise VaultError(rel_path, exc) from exc

    def create(self, rel_path: str, content: str) -> Path:
        """Write a new note and return its absolute path.

        Never overwrites: an existing file is an error.  Parent folders are
        created.  If the write fails part-way (including text that cannot be
        encoded as UTF-8), the partial file is removed.

        Raises:
            VaultError: if the file exists or cannot be written.
        """
        path = self._resolve(rel_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = path.open("x", encoding="utf-8")
        except OSError as exc:
            raise VaultError(rel_path, exc) from exc
        try:
            with fh:
                fh.write(content)
        except (OSError, UnicodeEncodeError) as exc:
            path.unlink(missing_ok=True)
            raise VaultError(rel_path, exc) from exc
        logger.debug("Created %s (%s chars)", path, f"{len(content):,}")
        return path

    def _resolve(self, rel_path: str) -> Path:
        """Map a vault-relative path to disk, refusing paths outside the vault."""
        root = self.root.resolve()
        path = (root / rel_path.lstrip("/")).resolve()
        if path != root and root not in path.parents:
            raise VaultError(rel_path, ValueError("path escapes the vault root"))
        return path
