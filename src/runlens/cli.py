from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from runlens.api.client import AssistantsClient, DebugInfo
from runlens.config import Config, load_config
from runlens.diagrams.timeline_view import render_text_timeline
from runlens.errors import (
    ERROR_TEMPLATES,
    ErrorCode,
    RunLensErrorReport,
    error_exit,
    handle_exception,
    set_verbose,
)
from runlens.fixtures import FixtureError, FixtureSource, generate_fixture_file, load_fixture
from runlens.logging_utils import setup_logging
from runlens.redaction import redact_dict, register_secret
from runlens.session import FetchOutcome, FetchRequest, RunSession
from runlens.store import SavedSession, SessionStore
from runlens.utils.artifacts import OUTPUT_FORMATS, disable_redaction, write_view_artifacts
from runlens.validation import validate_fixture

logger = logging.getLogger(__name__)

# Placeholder credential; dev-fixtures mode never reaches the API
DEV_FIXTURES_KEY = "dev-fixtures"


def _load_config_or_exit(args: argparse.Namespace, mode: Optional[str] = None) -> Config:
    overrides = {
        "api_key": getattr(args, "api_key", None),
        "thread_id": getattr(args, "thread_id", None),
        "run_id": getattr(args, "run_id", None),
        "assistant_id": getattr(args, "assistant_id", None),
        "debug": True if getattr(args, "debug", False) else None,
        "fixture": getattr(args, "fixture", None),
    }
    try:
        config = load_config(mode=mode, env_file=getattr(args, "env_file", None), cli_overrides=overrides)
    except ValueError as e:
        error_exit(ErrorCode.E003, str(e))
    return config


def _apply_selection(session: RunSession, select: Optional[int]) -> None:
    """Select step ``select`` (1-based, as labelled in the timeline)."""
    if select is None:
        return
    if not session.selection.select(select - 1):
        count = session.selection.step_count or 0
        print(f"Warning: no step {select} to select (run has {count} step(s))", file=sys.stderr)


def _emit(
    session: RunSession,
    args: argparse.Namespace,
    debug: Optional[DebugInfo] = None,
) -> int:
    view = session.view
    if view is None:
        return 1
    _apply_selection(session, getattr(args, "select", None))
    view = session.view

    print(render_text_timeline(view, session.selection), end="")

    if getattr(args, "out", None):
        if getattr(args, "no_redact", False):
            disable_redaction()
        out_dir = Path(args.out)
        try:
            written = write_view_artifacts(
                out_dir=out_dir,
                view=view,
                selection=session.selection,
                formats=[args.format],
                debug=debug,
            )
        except OSError as e:
            handle_exception(e, ErrorCode.E300, str(out_dir))
            return 1
        print(f"\nWrote {len(written)} artifact(s) to {out_dir}")
    return 0


def _report_fetch_error(outcome: FetchOutcome) -> int:
    code = outcome.exception.code if outcome.exception else ErrorCode.E101
    RunLensErrorReport(
        code=code,
        message=outcome.error or "",
        next_step=ERROR_TEMPLATES[code][1],
    ).print()
    return 1


def _fetch_from_fixture(config: Config, args: argparse.Namespace) -> int:
    """dev-fixtures mode: serve the fetch from a fixture file. Nothing is saved."""
    if config.fixture_path is None:
        error_exit(ErrorCode.E004)
    try:
        source = FixtureSource(load_fixture(config.fixture_path))
    except FixtureError as e:
        handle_exception(e, e.code, e.message)
        return 1

    request = FetchRequest(
        thread_id=config.thread_id or source.thread_id,
        run_id=config.run_id or source.run_id,
        api_key=DEV_FIXTURES_KEY,
        assistant_id=config.assistant_id,
    )
    logger.info("Serving run %s from %s", request.run_id, config.fixture_path)
    session = RunSession(steps_limit=config.api.steps_limit)
    outcome = session.fetch(request, source)
    if outcome.error:
        return _report_fetch_error(outcome)
    return _emit(session, args)


def _cmd_fetch(args: argparse.Namespace) -> int:
    config = _load_config_or_exit(args, mode=args.mode)
    if config.is_dev_fixtures():
        return _fetch_from_fixture(config, args)

    store = SessionStore(config.store_path)
    saved = store.load()

    request = FetchRequest(
        thread_id=config.thread_id or saved.thread_id,
        run_id=config.run_id or saved.run_id,
        api_key=config.api_key or saved.api_key,
        assistant_id=config.assistant_id or saved.assistant_id,
    )
    debug_mode = config.debug or saved.debug_mode
    register_secret(request.api_key)

    if not args.no_save:
        store.save(SavedSession(
            run_id=request.run_id,
            thread_id=request.thread_id,
            assistant_id=request.assistant_id,
            api_key=request.api_key,
            debug_mode=debug_mode,
        ))

    debug = DebugInfo() if debug_mode else None
    session = RunSession(steps_limit=config.api.steps_limit)
    with AssistantsClient(
        api_key=request.api_key or "",
        base_url=config.api.base_url,
        beta_header=config.api.beta_header,
        timeout=config.api.timeout_seconds,
        debug=debug,
    ) as client:
        outcome = session.fetch(request, client, debug=debug)

    if debug is not None:
        print("Debug Information:", file=sys.stderr)
        print(json.dumps(redact_dict(debug.to_dict()), indent=2, default=str), file=sys.stderr)

    if outcome.error:
        return _report_fetch_error(outcome)

    return _emit(session, args, debug=debug)


def _cmd_render_fixture(args: argparse.Namespace) -> int:
    fixture_path = Path(args.fixture)
    try:
        fixture = load_fixture(fixture_path)
    except FixtureError as e:
        handle_exception(e, e.code, e.message)
        return 1

    session = RunSession()
    session.load(fixture.run, fixture.steps)
    return _emit(session, args)


def _cmd_validate(args: argparse.Namespace) -> int:
    result = validate_fixture(args.fixture)
    print(result.summary())
    return 0 if result.valid else 1


def _cmd_generate_fixture(args: argparse.Namespace) -> int:
    definition = Path(args.definition)
    if not definition.exists():
        error_exit(ErrorCode.E302, str(definition))
    try:
        fixture = generate_fixture_file(definition, Path(args.out))
    except yaml.YAMLError as e:
        handle_exception(e, ErrorCode.E200, f"{definition}: {e}")
        return 1
    except FixtureError as e:
        handle_exception(e, e.code, f"{definition}: {e.message}")
        return 1
    except OSError as e:
        handle_exception(e, ErrorCode.E300, str(args.out))
        return 1
    print(f"Wrote fixture with {len(fixture.steps['data'])} step(s) to {args.out}")
    return 0


def _cmd_clear_saved(args: argparse.Namespace) -> int:
    config = _load_config_or_exit(args)
    SessionStore(config.store_path).clear()
    print(f"Cleared saved identifiers in {config.store_path}")
    return 0


def _cmd_show_config(args: argparse.Namespace) -> int:
    config = _load_config_or_exit(args)
    print(json.dumps(config.to_display_dict(), indent=2))
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    p = argparse.ArgumentParser(
        prog="runlens",
        description="Waterfall timelines for assistant runs and their steps",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging and full tracebacks on errors",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        help="Also write debug logs to this file",
    )
    p.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    def add_output_args(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--out", help="Output directory for artifacts")
        parser.add_argument(
            "--format",
            choices=OUTPUT_FORMATS,
            default="all",
            help="Artifacts to write with --out: all (default), html, json, or text",
        )
        parser.add_argument(
            "--select",
            type=int,
            help="Highlight step N (1-based) and print its details",
        )
        parser.add_argument(
            "--no-redact",
            action="store_true",
            dest="no_redact",
            help="Do not redact credentials in artifacts",
        )

    # fetch (live)
    p_fetch = sub.add_parser("fetch", help="Fetch a run and its steps from the API")
    p_fetch.add_argument("--thread-id", dest="thread_id", help="Thread ID (thread_...)")
    p_fetch.add_argument("--run-id", dest="run_id", help="Run ID (run_...)")
    p_fetch.add_argument("--assistant-id", dest="assistant_id", help="Assistant ID (optional)")
    p_fetch.add_argument("--api-key", dest="api_key", help="API key (default: RUNLENS_API_KEY / OPENAI_API_KEY)")
    p_fetch.add_argument("--env-file", dest="env_file", help="Path to .env file (default: discovered)")
    p_fetch.add_argument(
        "--mode",
        choices=["dev-fixtures", "live"],
        help="Execution mode (default: RUNLENS_MODE, else live)",
    )
    p_fetch.add_argument("--fixture", help="Fixture JSON served in dev-fixtures mode (RUNLENS_FIXTURE)")
    p_fetch.add_argument("--debug", action="store_true", help="Print request/response details")
    p_fetch.add_argument(
        "--no-save",
        action="store_true",
        dest="no_save",
        help="Do not remember identifiers for the next run",
    )
    add_output_args(p_fetch)
    p_fetch.set_defaults(func=_cmd_fetch)

    # render-fixture (offline)
    p_fx = sub.add_parser("render-fixture", help="Offline: render a run from a fixture file")
    p_fx.add_argument("--fixture", required=True, help="Path to a fixture JSON file")
    add_output_args(p_fx)
    p_fx.set_defaults(func=_cmd_render_fixture)

    # validate
    p_val = sub.add_parser("validate", help="Validate a fixture file against the schema")
    p_val.add_argument("--fixture", required=True, help="Path to a fixture JSON file")
    p_val.set_defaults(func=_cmd_validate)

    # generate-fixture
    p_gen = sub.add_parser("generate-fixture", help="Generate a fixture from a YAML definition")
    p_gen.add_argument("--definition", required=True, help="Path to a YAML definition")
    p_gen.add_argument("--out", required=True, help="Fixture JSON file to write")
    p_gen.set_defaults(func=_cmd_generate_fixture)

    # clear-saved
    p_clr = sub.add_parser("clear-saved", help="Forget saved identifiers and API key")
    p_clr.add_argument("--env-file", dest="env_file", help="Path to .env file")
    p_clr.set_defaults(func=_cmd_clear_saved)

    # show-config
    p_cfg = sub.add_parser("show-config", help="Show resolved configuration")
    p_cfg.add_argument("--env-file", dest="env_file", help="Path to .env file")
    p_cfg.set_defaults(func=_cmd_show_config)

    args = p.parse_args(argv)
    set_verbose(args.verbose)
    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger.debug("Running command %s", args.cmd)

    raise SystemExit(args.func(args))
