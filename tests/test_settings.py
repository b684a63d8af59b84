"""Tests for weekly_summarizer/settings.py: persistence and the settings form."""

import json
import logging

import pytest

from weekly_summarizer.models import Settings, SettingsError
from weekly_summarizer.settings import (
    SETTINGS_SCHEMA,
    SettingsStore,
    apply_setting,
    default_settings_path,
)


@pytest.fixture
def store(tmp_path) -> SettingsStore:
    return SettingsStore(tmp_path / "cfg" / "settings.json")


# ---------------------------------------------------------------------------
# SettingsStore
# ---------------------------------------------------------------------------


def test_default_settings_path(tmp_path):
    assert default_settings_path(tmp_path) == (
        tmp_path / ".weekly-summarizer" / "settings.json"
    )


def test_load_missing_file_returns_defaults(store):
    assert store.load() == Settings()


def test_save_writes_camel_case_keys(store):
    store.save(Settings(model_name="llama3"))
    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data["modelName"] == "llama3"
    assert data["outputPathTemplate"] == "Summary of Week %WEEK_NUMBER%.md"
    assert data["maxTokens"] == 500
    assert "model_name" not in data


def test_save_then_load_preserves_values(store):
    settings = Settings(output_folder="Reviews", max_tokens=None, mode="single-pass")
    store.save(settings)
    assert store.load() == settings


def test_load_merges_partial_file_over_defaults(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({"outputFolder": "Weekly"}), encoding="utf-8")
    loaded = store.load()
    assert loaded.output_folder == "Weekly"
    assert loaded.model_name == "mistral:latest"
    assert loaded.endpoint_url == "http://localhost:11434"


def test_load_ignores_unknown_keys(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({"legacy": 1, "model": "x"}), encoding="utf-8")
    assert store.load() == Settings()


def test_load_invalid_json_returns_defaults(store, caplog):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="weekly_summarizer"):
        assert store.load() == Settings()
    assert "Could not read settings" in caplog.text


def test_load_non_object_returns_defaults(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("[1, 2]", encoding="utf-8")
    assert store.load() == Settings()


def test_load_drops_fields_of_wrong_type(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps({"modelName": 5, "outputFolder": "Notes", "mode": "weird"}),
        encoding="utf-8",
    )
    loaded = store.load()
    assert loaded.model_name == "mistral:latest"
    assert loaded.mode == "two-pass"
    assert loaded.output_folder == "Notes"


def test_load_non_numeric_max_tokens_becomes_none(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps({"maxTokens": "lots"}), encoding="utf-8")
    assert store.load().max_tokens is None


# ---------------------------------------------------------------------------
# SETTINGS_SCHEMA
# ---------------------------------------------------------------------------


def test_schema_covers_every_persisted_key():
    persisted = set(Settings().model_dump(by_alias=True))
    assert {field.key for field in SETTINGS_SCHEMA} == persisted


def test_schema_template_field_mentions_placeholders():
    field = next(f for f in SETTINGS_SCHEMA if f.key == "outputPathTemplate")
    assert "%WEEK_NUMBER%" in field.description
    assert "%YEAR%" in field.description


# ---------------------------------------------------------------------------
# apply_setting
# ---------------------------------------------------------------------------


def test_apply_setting_by_persisted_key():
    updated = apply_setting(Settings(), "modelName", "llama3:8b")
    assert updated.model_name == "llama3:8b"


def test_apply_setting_by_attribute_name():
    updated = apply_setting(Settings(), "output_folder", "Reviews")
    assert updated.output_folder == "Reviews"


def test_apply_setting_returns_copy():
    original = Settings()
    apply_setting(original, "modelName", "other")
    assert original.model_name == "mistral:latest"


def test_apply_setting_parses_max_tokens():
    assert apply_setting(Settings(), "maxTokens", " 750 ").max_tokens == 750


@pytest.mark.parametrize("raw", ["", "abc", "12abc"])
def test_apply_setting_unparseable_max_tokens_becomes_none(raw):
    assert apply_setting(Settings(), "maxTokens", raw).max_tokens is None


def test_apply_setting_timeout():
    assert apply_setting(Settings(), "timeoutS", "2.5").timeout_s == 2.5
    assert apply_setting(Settings(), "timeoutS", "").timeout_s is None


def test_apply_setting_unknown_key_raises():
    with pytest.raises(SettingsError, match="Unknown setting"):
        apply_setting(Settings(), "colour", "blue")


def test_apply_setting_invalid_choice_raises():
    with pytest.raises(SettingsError, match="mode"):
        apply_setting(Settings(), "mode", "three-pass")
