"""Command-line interface for the weekly summarizer.

Entry point: ``weekly-summary`` (configured in ``pyproject.toml``).

Usage:
    weekly-summary --vault DIR generate [options]     # write this week's review
    weekly-summary --vault DIR settings show          # print stored settings
    weekly-summary --vault DIR settings set KEY VALUE # change one setting
    weekly-summary settings fields                    # describe editable fields

Settings live in ``<vault>/.weekly-summarizer/settings.json`` unless
``--settings`` points elsewhere.  ``settings set`` persists immediately.
For ``generate``, values are resolved as: CLI flag, then environment
(``WEEKLY_SUMMARY_MODEL``, ``WEEKLY_SUMMARY_ENDPOINT``), then stored settings.
Overrides apply to the run only and are never saved.

Before generating, the CLI checks the configured endpoint (skip with
``--no-check``): for the ``ollama`` backend it asks ``/api/version`` and expects
an Ollama reply, for ``openai`` any HTTP answer from the host will do.
"""

import argparse
import json
import logging
import os
import sys
import urllib.error
import urllib.parse
import urllib.request
from datetime import date, datetime
from pathlib import Path

from dotenv import load_dotenv

from weekly_summarizer.llm import create_client
from weekly_summarizer.log import setup_logging
from weekly_summarizer.models import Backend, Settings, SettingsError
from weekly_summarizer.settings import (
    DEFAULT_SETTINGS_DIR,
    SETTINGS_SCHEMA,
    SettingsStore,
    apply_setting,
    default_settings_path,
)
from weekly_summarizer.vault import Vault
from weekly_summarizer.workflow import WeeklySummaryWorkflow

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the selected command."""
    load_dotenv()

    parser = _build_parser()
    args = parser.parse_args(argv)

    vault_root = Path(args.vault)
    if args.log_file:
        log_file = Path(args.log_file)
    elif args.command == "generate" and vault_root.is_dir():
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = vault_root / DEFAULT_SETTINGS_DIR / "logs" / f"run_{ts}.log"
    else:
        log_file = None
    setup_logging(verbose=args.verbose, log_file=log_file)

    settings_path = (
        Path(args.settings) if args.settings else default_settings_path(vault_root)
    )
    store = SettingsStore(settings_path)

    if args.command == "generate":
        _run_generate(vault_root, store, args)
    elif args.settings_command == "fields":
        _print_fields()
    elif args.settings_command == "set":
        _run_set(store, args.key, args.value)
    else:
        _print_settings(store.load())


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


def _run_generate(vault_root: Path, store: SettingsStore, args) -> None:
    """Run the weekly summary workflow once and exit non-zero on failure."""
    if not vault_root.is_dir():
        logger.error("Vault directory not found: %s", vault_root)
        sys.exit(1)

    settings = _resolve_settings(store.load(), args)

    if args.check:
        _check_endpoint(settings.endpoint_url, settings.backend)

    clock = (lambda: args.date) if args.date else datetime.now
    workflow = WeeklySummaryWorkflow(
        settings=settings,
        vault=Vault(vault_root),
        client=create_client(settings),
        clock=clock,
        notify=print,
    )
    result = workflow.run()

    logger.info(
        "Done: status: %s, read: %d, failed: %d, inference calls: %d",
        result.status,
        result.documents_read,
        result.documents_failed,
        result.inference_calls,
    )
    if result.status == "failed":
        sys.exit(1)


def _resolve_settings(settings: Settings, args) -> Settings:
    """Layer environment and CLI overrides over the stored settings."""
    overrides: dict = {}

    model = args.model or os.environ.get("WEEKLY_SUMMARY_MODEL")
    if model:
        overrides["model_name"] = model
    endpoint = args.endpoint or os.environ.get("WEEKLY_SUMMARY_ENDPOINT")
    if endpoint:
        overrides["endpoint_url"] = endpoint
    if args.mode:
        overrides["mode"] = args.mode
    if args.backend:
        overrides["backend"] = args.backend
    if args.timeout is not None:
        overrides["timeout_s"] = args.timeout

    return settings.model_copy(update=overrides)


# ---------------------------------------------------------------------------
# settings
# ---------------------------------------------------------------------------


def _run_set(store: SettingsStore, key: str, value: str) -> None:
    try:
        updated = apply_setting(store.load(), key, value)
    except SettingsError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    store.save(updated)
    logger.info("Saved %s to %s", key, store.path)


def _print_settings(settings: Settings) -> None:
    print(json.dumps(settings.model_dump(by_alias=True), indent=2))


def _print_fields() -> None:
    for field in SETTINGS_SCHEMA:
        print(f"{field.key}  ({field.name})")
        print(f"    {field.description}")
        if field.placeholder:
            print(f"    e.g. {field.placeholder}")


# ---------------------------------------------------------------------------
# Endpoint health check
# ---------------------------------------------------------------------------


def _check_endpoint(endpoint_url: str, backend: Backend = "ollama") -> None:
    """Verify that the inference service is reachable; exit(1) if not.

    An Ollama server must answer ``GET /api/version`` with its version, so a
    wrong host or port serving something else is caught here.  For an
    OpenAI-compatible server any HTTP response from the host is enough.
    """
    parsed = urllib.parse.urlparse(endpoint_url)
    root = f"{parsed.scheme}://{parsed.netloc}"
    if backend == "ollama":
        _check_ollama(root)
        return
    try:
        with urllib.request.urlopen(root, timeout=5):
            pass
    except urllib.error.HTTPError:
        # Any HTTP response means the server is up.
        return
    except Exception as exc:
        logger.error("Cannot reach inference endpoint at %s\n  Details: %s", root, exc)
        sys.exit(1)


def _check_ollama(root: str) -> None:
    version_url = f"{root}/api/version"
    try:
        with urllib.request.urlopen(version_url, timeout=5) as resp:
            payload = json.loads(resp.read().decode("utf-8"))
        version = payload["version"]
    except Exception as exc:
        logger.error(
            "No Ollama server answering at %s\n  Details: %s", version_url, exc
        )
        sys.exit(1)
    logger.debug("Ollama %s at %s", version, root)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("expected YYYY-MM-DD") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weekly-summary",
        description=(
            "Summarise the notes in a markdown vault into a weekly review "
            "using a local LLM via Ollama."
        ),
    )
    parser.add_argument(
        "--vault",
        metavar="DIR",
        default=os.environ.get("WEEKLY_SUMMARY_VAULT", "."),
        help="Vault root directory (default: WEEKLY_SUMMARY_VAULT env var or the current directory).",
    )
    parser.add_argument(
        "--settings",
        metavar="FILE",
        default=None,
        help=f"Settings file (default: VAULT/{DEFAULT_SETTINGS_DIR}/settings.json).",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable DEBUG-level logging (default: off).",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        default=None,
        help=(
            f"Write log output to FILE (default for generate: "
            f"VAULT/{DEFAULT_SETTINGS_DIR}/logs/run_TIMESTAMP.log)."
        ),
    )

    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser(
        "generate", help="Generate the weekly summary for the current ISO week."
    )
    generate.add_argument(
        "--model", metavar="MODEL", default=None, help="Model identifier for this run."
    )
    generate.add_argument(
        "--endpoint", metavar="URL", default=None, help="Inference endpoint for this run."
    )
    generate.add_argument(
        "--mode",
        choices=["two-pass", "single-pass"],
        default=None,
        help="Summarization variant for this run (default: stored setting).",
    )
    generate.add_argument(
        "--backend",
        choices=["ollama", "openai"],
        default=None,
        help="Backend protocol for this run (default: stored setting).",
    )
    generate.add_argument(
        "--timeout",
        metavar="S",
        type=float,
        default=None,
        help="Request timeout in seconds for this run (default: stored setting, none).",
    )
    generate.add_argument(
        "--date",
        metavar="YYYY-MM-DD",
        type=_iso_date,
        default=None,
        help="Generate as if today were this date (default: today).",
    )
    generate.add_argument(
        "--check",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Check that the endpoint is reachable before generating (default: on).",
    )

    settings = commands.add_parser("settings", help="Show or edit stored settings.")
    settings_commands = settings.add_subparsers(dest="settings_command", required=True)
    settings_commands.add_parser("show", help="Print the effective stored settings.")
    settings_commands.add_parser("fields", help="Describe every editable setting.")
    set_parser = settings_commands.add_parser("set", help="Change and save one setting.")
    set_parser.add_argument("key", help="Setting key, e.g. modelName.")
    set_parser.add_argument("value", help="New value; an empty string clears numbers.")

    return parser


if __name__ == "__main__":
    main()
