"""Settings persistence and the declarative settings form.

``SettingsStore`` loads and saves the ``Settings`` record as a JSON file
(camelCase keys).  ``SETTINGS_SCHEMA`` describes every editable field so a
front end (the ``weekly-summary settings`` command here) can render a form
without knowing the model, and ``apply_setting`` turns one raw form value into
an updated ``Settings``.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from weekly_summarizer.models import Settings, SettingsError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_DIR = ".weekly-summarizer"
DEFAULT_SETTINGS_FILE = "settings.json"


def default_settings_path(vault_root: Path) -> Path:
    """Return ``<vault>/.weekly-summarizer/settings.json``."""
    return vault_root / DEFAULT_SETTINGS_DIR / DEFAULT_SETTINGS_FILE


# ---------------------------------------------------------------------------
# Form schema
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SettingField:
    """One row of the settings form.

    Attributes:
        key:         Persisted (camelCase) key, also accepted by ``apply_setting``.
        name:        Human-readable label.
        description: One-line help text.
        placeholder: Example value shown when the field is empty.
    """

    key: str
    name: str
    description: str
    placeholder: str


SETTINGS_SCHEMA: tuple[SettingField, ...] = (
    SettingField(
        key="outputPathTemplate",
        name="Output Path Template",
        description="Template for the output file. Use %WEEK_NUMBER% and %YEAR% as placeholders.",
        placeholder="Summary of Week %WEEK_NUMBER%.md",
    ),
    SettingField(
        key="outputFolder",
        name="Output Folder",
        description="Folder where the summary file will be saved.",
        placeholder="/",
    ),
    SettingField(
        key="endpointUrl",
        name="Endpoint URL",
        description="URL of the local inference service (e.g., http://localhost:11434).",
        placeholder="http://localhost:11434",
    ),
    SettingField(
        key="modelName",
        name="Model",
        description=(
            "Model to be used for summarization (e.g., mistral:latest). "
            "The model must already be pulled on the server."
        ),
        placeholder="mistral:latest",
    ),
    SettingField(
        key="maxTokens",
        name="Maximum Tokens",
        description="Maximum number of tokens to use for each summary request (two-pass mode).",
        placeholder="500",
    ),
    SettingField(
        key="mode",
        name="Summary Mode",
        description="two-pass (summary per note, then a review) or single-pass (one request over all notes).",
        placeholder="two-pass",
    ),
    SettingField(
        key="backend",
        name="Backend",
        description="ollama (native chat API) or openai (OpenAI-compatible server such as LM Studio).",
        placeholder="ollama",
    ),
    SettingField(
        key="timeoutS",
        name="Request Timeout",
        description="Seconds before an inference request is abandoned. Leave empty to wait indefinitely.",
        placeholder="",
    ),
)

_FIELDS_BY_KEY = {field.key: field for field in SETTINGS_SCHEMA}


def apply_setting(settings: Settings, key: str, raw_value: str) -> Settings:
    """Return a copy of ``settings`` with one form value applied.

    ``key`` may be the persisted camelCase key or the Python attribute name.
    Numeric fields that do not parse become ``None``.

    Raises:
        SettingsError: if ``key`` is unknown or the value is not one of the
            allowed choices (``mode``, ``backend``).
    """
    field = _FIELDS_BY_KEY.get(key) or _field_for_attribute(key)
    if field is None:
        known = ", ".join(_FIELDS_BY_KEY)
        raise SettingsError(f"Unknown setting {key!r}; expected one of: {known}")

    data = settings.model_dump(by_alias=True)
    data[field.key] = raw_value
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise SettingsError(f"Invalid value for {field.key}: {raw_value!r}") from exc


def _field_for_attribute(name: str) -> SettingField | None:
    info = Settings.model_fields.get(name)
    if info is None:
        return None
    return _FIELDS_BY_KEY.get(info.alias or name)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class SettingsStore:
    """JSON-file persistence for ``Settings``.

    Attributes:
        path: Location of the settings file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Settings:
        """Return stored settings merged field-by-field over the defaults.

        A missing file yields the defaults.  An unreadable file, or one that
        is not a JSON object, is logged and also yields the defaults.  Stored
        fields of the wrong type are dropped individually.
        """
        if not self.path.exists():
            logger.debug("No settings file at %s; using defaults", self.path)
            return Settings()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read settings from %s: %s", self.path, exc)
            return Settings()

        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", self.path)
            return Settings()

        try:
            return Settings.model_validate(data)
        except ValidationError as exc:
            bad_keys = {str(err["loc"][0]) for err in exc.errors() if err.get("loc")}
            logger.warning(
                "Ignoring invalid stored settings (%s); using defaults for them",
                ", ".join(sorted(bad_keys)),
            )
            cleaned = {k: v for k, v in data.items() if k not in bad_keys}
            return Settings.model_validate(cleaned)

    def save(self, settings: Settings) -> None:
        """Persist the full record, creating parent directories as needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = settings.model_dump(by_alias=True)
        self.path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        logger.debug("Settings saved to %s", self.path)
