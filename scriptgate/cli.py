from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from scriptgate import service
from scriptgate.config import ScriptGateConfig, load_config
from scriptgate.errors import ScriptGateError, UnconfiguredDependencyError
from scriptgate.models import LifecycleScriptGroups
from scriptgate.report import render_missing, render_report, render_sync
from scriptgate.trace import TraceEvent, TraceEventEmitter

LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scriptgate",
        description="Run only the dependency lifecycle scripts allowed by policy.",
    )
    parser.add_argument(
        "--project-dir",
        type=Path,
        default=Path.cwd(),
        help="Project root containing package.json (defaults to the working directory).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default=None,
        help="Logging level (overrides .scriptgate.yaml and SCRIPTGATE_LOG_LEVEL).",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser(
        "run",
        help="Run allowed dependency scripts, then the project's own lifecycle.",
    ).set_defaults(func=_cmd_run)

    subparsers.add_parser(
        "auto",
        help="Add missing packages as disallowed and remove stale entries.",
    ).set_defaults(func=_cmd_auto)

    list_cmd = subparsers.add_parser(
        "list",
        help="List allowed, disallowed, unconfigured and unneeded packages.",
    )
    list_cmd.add_argument("--json", action="store_true", help="Emit the listing as JSON.")
    list_cmd.set_defaults(func=_cmd_list)

    subparsers.add_parser(
        "setup",
        help="Disable implicit lifecycle scripts in .npmrc and .yarnrc.",
    ).set_defaults(func=_cmd_setup)

    return parser


def _log_trace(record: TraceEvent) -> None:
    LOGGER.debug("trace %s", json.dumps(record.to_dict(), sort_keys=True))


def _cmd_run(args: argparse.Namespace, config: ScriptGateConfig) -> int:
    try:
        service.run(
            args.project_dir,
            config=config,
            emitter=TraceEventEmitter(sinks=[_log_trace]),
        )
    except UnconfiguredDependencyError as exc:
        groups = exc.groups if exc.groups is not None else LifecycleScriptGroups()
        print(render_missing(exc.result, groups))
        return 1
    return 0


def _cmd_auto(args: argparse.Namespace, config: ScriptGateConfig) -> int:
    sync = service.set_default(args.project_dir, config=config)
    print(render_sync(sync))
    return 0


def _cmd_list(args: argparse.Namespace, config: ScriptGateConfig) -> int:
    loaded = service.list_packages(args.project_dir, config=config)
    if args.json:
        print(json.dumps(loaded.result.to_payload(loaded.groups)))
    else:
        print(render_report(loaded.result, loaded.groups))
    return 0


def _cmd_setup(args: argparse.Namespace, config: ScriptGateConfig) -> int:  # noqa: ARG001
    written = service.setup(args.project_dir)
    print(json.dumps({"written": [str(path) for path in written]}))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        # Bare invocation behaves like the package manager hook: run.
        args.func = _cmd_run

    try:
        config = load_config(args.project_dir)
    except ScriptGateError as exc:
        print(f"scriptgate: error: {exc}", file=sys.stderr)
        return 1

    level = args.log_level or config.log_level
    logging.basicConfig(level=getattr(logging, level.upper()), format="%(message)s")

    try:
        return args.func(args, config)
    except ScriptGateError as exc:
        print(f"scriptgate: error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
