"""Shared pytest fixtures for the weekly_summarizer test suite."""

import logging
from datetime import date
from pathlib import Path

import pytest

from weekly_summarizer.models import Settings
from weekly_summarizer.vault import Vault


# ---------------------------------------------------------------------------
# Logger isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Clear the weekly_summarizer logger between tests.

    Tests that call ``main()`` trigger ``setup_logging()``, which attaches
    handlers and sets ``propagate=False``.  Without this fixture the state
    leaks into subsequent tests and breaks ``caplog`` capture.
    """
    logger = logging.getLogger("weekly_summarizer")

    def _clear():
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    _clear()
    yield
    _clear()


# ---------------------------------------------------------------------------
# Fake chat clients
# ---------------------------------------------------------------------------


class EchoClient:
    """Chat client stub that answers ``"Summary: " + prompt`` and records calls."""

    model = "echo"

    def __init__(self) -> None:
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return f"Summary: {prompt}"


class ScriptedClient:
    """Chat client stub that returns (or raises) queued replies in order."""

    model = "scripted"

    def __init__(self, replies) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []

    def complete(self, prompt: str):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def echo_client() -> EchoClient:
    return EchoClient()


# ---------------------------------------------------------------------------
# Vault and settings
# ---------------------------------------------------------------------------

#: Wednesday of ISO week 1, 2024.
WEEK_ONE_2024 = date(2024, 1, 3)


@pytest.fixture
def clock():
    return lambda: WEEK_ONE_2024


@pytest.fixture
def vault_dir(tmp_path) -> Path:
    """Vault with the two notes ``A.md`` ("Did X") and ``B.md`` ("Did Y")."""
    root = tmp_path / "vault"
    root.mkdir()
    (root / "A.md").write_text("Did X", encoding="utf-8")
    (root / "B.md").write_text("Did Y", encoding="utf-8")
    return root


@pytest.fixture
def vault(vault_dir) -> Vault:
    return Vault(vault_dir)


@pytest.fixture
def settings() -> Settings:
    return Settings()
