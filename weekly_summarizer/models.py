"""Pydantic models and exceptions for the weekly summarizer.

``Settings`` is the one persisted record; every other model is an ephemeral
value that lives for a single generation run.  Persisted keys use camelCase
(``outputPathTemplate``, ``maxTokens``, ...) while Python code uses the
snake_case attribute names.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

SummaryMode = Literal["two-pass", "single-pass"]
"""``two-pass``: one short summary per note, then a final review over them.
``single-pass``: one request over the concatenation of every note."""

Backend = Literal["ollama", "openai"]
"""Native Ollama chat API, or any OpenAI-compatible server (LM Studio)."""

RunStatus = Literal["written", "skipped", "failed"]

WEEK_NUMBER_TOKEN = "%WEEK_NUMBER%"
YEAR_TOKEN = "%YEAR%"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    """User-editable configuration, persisted as JSON by ``SettingsStore``.

    Field contents are not validated: a malformed template is
    used as-is, and a token budget that does not parse as an integer becomes
    ``None`` (no limit sent) rather than an error.

    Attributes:
        output_path_template: File name of the review.  ``%WEEK_NUMBER%`` and
                              ``%YEAR%`` are replaced at generation time.
        output_folder:        Vault-relative folder for the review.  ``"/"``
                              (the default) means the vault root.
        endpoint_url:         Base URL of the inference service.
        model_name:           Model identifier sent with every request.
        max_tokens:           Generation cap per request (two-pass only).
        mode:                 Which summarization variant to run.
        backend:              Wire protocol spoken to ``endpoint_url``.
        timeout_s:            Seconds before a request is abandoned.  ``None``
                              waits indefinitely.
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", protected_namespaces=()
    )

    output_path_template: str = Field(
        "Summary of Week %WEEK_NUMBER%.md", alias="outputPathTemplate"
    )
    output_folder: str = Field("/", alias="outputFolder")
    endpoint_url: str = Field("http://localhost:11434", alias="endpointUrl")
    model_name: str = Field("mistral:latest", alias="modelName")
    max_tokens: int | None = Field(500, alias="maxTokens")
    mode: SummaryMode = "two-pass"
    backend: Backend = "ollama"
    timeout_s: float | None = Field(None, alias="timeoutS")

    @field_validator("max_tokens", mode="before")
    @classmethod
    def _coerce_max_tokens(cls, value: object) -> int | None:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        try:
            return int(str(value).strip())
        except ValueError:
            return None

    @field_validator("timeout_s", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: object) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            parsed = float(str(value).strip())
        except ValueError:
            return None
        return parsed if parsed > 0 else None


# ---------------------------------------------------------------------------
# Per-run values
# ---------------------------------------------------------------------------


class Document(BaseModel):
    """Read-only view of one note; ``path`` is vault-relative (POSIX)."""

    path: str
    content: str


class DocumentSummary(BaseModel):
    """Short summary of one note, produced by the first pass of a two-pass run."""

    path: str
    summary: str


class WeekKey(BaseModel):
    """ISO-8601 week and ISO year that key a run's output document."""

    week: int = Field(ge=1, le=53)
    year: int


class RunResult(BaseModel):
    """Outcome of one ``WeeklySummaryWorkflow.run()``."""

    status: RunStatus
    week: int
    year: int
    output_path: str
    documents_read: int = 0
    documents_failed: int = 0
    inference_calls: int = 0
    message: str = ""


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SettingsError(Exception):
    """Raised when a settings key is unknown or a value cannot be applied."""


class InferenceError(Exception):
    """Raised when a chat request to the inference backend fails."""


class VaultError(Exception):
    """Wraps an I/O failure on a single vault document.

    Attributes:
        path:  Vault-relative path of the document.
        cause: The original exception.
    """

    def __init__(self, path: str | Path, cause: Exception) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Vault operation failed for {path}: {cause}")
