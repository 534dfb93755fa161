"""CLI entrypoint for the docs lint pipeline.

Exit codes are designed to be CI-friendly:
- 0: passed, skipped, or not triggered
- 1: unexpected error
- 2: configuration or usage error
- 3: change detection failed
- 4: spell check failed (violations found or checker unavailable)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from pydantic import ValidationError

from docs_lint_workflow import __version__
from docs_lint_workflow.pipeline.changes import IS_DOC_OUTPUT, DetectionFailure
from docs_lint_workflow.pipeline.config import DocsLintSettings
from docs_lint_workflow.pipeline.factory import PipelineFactory
from docs_lint_workflow.pipeline.github.client import GitHubClient
from docs_lint_workflow.pipeline.logging import configure_logging
from docs_lint_workflow.pipeline.outputs import GITHUB_OUTPUT_ENV, export_outputs, read_outputs
from docs_lint_workflow.pipeline.typos import CheckerUnavailable, LintFailure, LintReport
from docs_lint_workflow.pipeline.workflow.events import (
    ChangedFile,
    EventKind,
    TriggerEvent,
    load_event_from_actions_env,
)
from docs_lint_workflow.pipeline.workflow.policy import gate_allows_lint
from docs_lint_workflow.pipeline.workflow.state_machine import PipelineStateStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_DETECTION_FAILED = 3
EXIT_LINT_FAILED = 4


def _add_event_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--event-name",
        choices=[k.value for k in EventKind],
        default=None,
        help="Event kind; when omitted the GitHub Actions context (GITHUB_EVENT_*) is read",
    )
    parser.add_argument("--branch", default="", help="Branch pushed to, or pull request base")
    parser.add_argument(
        "--action",
        default=None,
        help="Pull request action, e.g. 'opened' or 'synchronize'",
    )
    parser.add_argument("--base", default=None, help="Base commit of the diff range")
    parser.add_argument("--head", default=None, help="Head commit of the diff range")
    parser.add_argument("--pull-number", type=int, default=None, help="Pull request number")
    parser.add_argument(
        "--path",
        dest="paths",
        action="append",
        default=None,
        help="A changed path (repeatable); implies the static source under --source auto",
    )
    parser.add_argument(
        "--source",
        choices=["auto", "static", "git", "github"],
        default="auto",
        help="How changed paths are enumerated",
    )
    parser.add_argument(
        "--root",
        default=".",
        help="Repository checkout root",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs-lint",
        description="Detect documentation changes and spell-check them",
    )
    parser.add_argument("--version", action="version", version=f"docs-lint-workflow {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    detect = subparsers.add_parser(
        "detect",
        help="Compute the isDoc output for an event and export it to GITHUB_OUTPUT",
    )
    _add_event_arguments(detect)

    lint = subparsers.add_parser(
        "lint",
        help="Spell-check the documentation targets when the isDoc gate is open",
    )
    lint.add_argument(
        "--is-doc",
        default=None,
        help=(
            "Upstream isDoc output; the linter only runs when this is exactly 'true'. "
            "When omitted, the isDoc recorded in GITHUB_OUTPUT is used (lint runs if none)"
        ),
    )
    lint.add_argument(
        "--files",
        default=None,
        help="Space or comma separated lint targets (defaults to DOCS_LINT_FILES)",
    )
    lint.add_argument("--root", default=".", help="Repository checkout root")

    run = subparsers.add_parser(
        "run",
        help="Run change detection and the gated doc linter in sequence",
    )
    _add_event_arguments(run)
    run.add_argument(
        "--state-file",
        default=None,
        help="Where to persist the run snapshot (defaults to DOCS_LINT_STATE_PATH)",
    )

    return parser


def _resolve_event(args: argparse.Namespace) -> TriggerEvent:
    if args.event_name:
        event = TriggerEvent(
            kind=EventKind(args.event_name),
            branch=args.branch,
            action=args.action,
            base_sha=args.base,
            head_sha=args.head,
            pull_number=args.pull_number,
        )
    else:
        event = load_event_from_actions_env(os.environ)
        if args.base or args.head:
            event = replace(
                event,
                base_sha=args.base or event.base_sha,
                head_sha=args.head or event.head_sha,
            )

    if args.paths is not None:
        event = event.with_changed_files(ChangedFile(path=p) for p in args.paths)
    return event


def _connect_github(
    args: argparse.Namespace,
    settings: DocsLintSettings,
    factory: PipelineFactory,
    event: TriggerEvent,
) -> GitHubClient | None:
    if args.source == "github" or (
        args.source == "auto" and event.changed_files is None and settings.has_github_api
    ):
        return factory.github_client(repository=event.repository)
    return None


def _print_report(report: LintReport) -> None:
    for violation in report.violations:
        print(violation.format())


def _cmd_detect(args: argparse.Namespace, settings: DocsLintSettings) -> int:
    factory = PipelineFactory(settings)
    event = _resolve_event(args)

    if not factory.trigger_filter().matches(event):
        print(f"Event not triggered ({event.kind.value} {event.branch or event.action or ''})")
        return EXIT_OK

    github = _connect_github(args, settings, factory, event)
    try:
        source = factory.source(
            args.source, root=Path(args.root), event_kind=event.kind, github=github
        )
        result = factory.detector(source).execute(event)
    finally:
        if github is not None:
            github.close()

    for name, value in result.outputs.items():
        print(f"{name}={value}")
    export_outputs(os.environ, result.outputs)
    return EXIT_OK


def _gate_value(args: argparse.Namespace) -> str:
    if args.is_doc is not None:
        return args.is_doc
    target = os.environ.get(GITHUB_OUTPUT_ENV, "").strip()
    if target:
        recorded = read_outputs(Path(target)).get(IS_DOC_OUTPUT)
        if recorded is not None:
            return recorded
    return "true"


def _cmd_lint(args: argparse.Namespace, settings: DocsLintSettings) -> int:
    is_doc = _gate_value(args)
    if not gate_allows_lint({IS_DOC_OUTPUT: is_doc}):
        print(f"Doc lint skipped (isDoc={is_doc})")
        return EXIT_OK

    factory = PipelineFactory(settings)
    targets = None
    if args.files is not None:
        targets = [t for t in args.files.replace(",", " ").split() if t]
    result = factory.linter(root=Path(args.root), targets=targets).lint()
    print(result.message)
    return EXIT_OK


def _cmd_run(args: argparse.Namespace, settings: DocsLintSettings) -> int:
    factory = PipelineFactory(settings)
    event = _resolve_event(args)
    root = Path(args.root)
    state_path = Path(args.state_file) if args.state_file else settings.run_state_path
    store = PipelineStateStore(state_path)

    github = None
    if factory.trigger_filter().matches(event):
        github = _connect_github(args, settings, factory, event)
    try:
        source = factory.source(args.source, root=root, event_kind=event.kind, github=github)
        result = factory.pipeline(source, root=root, store=store).run(event)
    finally:
        if github is not None:
            github.close()

    if not result.triggered:
        print(f"Event not triggered ({event.kind.value} {event.branch or event.action or ''})")
        return EXIT_OK

    if result.outputs is not None:
        for name, value in result.outputs.items():
            print(f"{name}={value}")
        export_outputs(os.environ, result.outputs)

    if result.lint_report is not None:
        _print_report(result.lint_report)

    snapshot = result.snapshot
    print(f"Pipeline {snapshot.state.value}")
    if isinstance(result.failure, DetectionFailure):
        print(f"Change detection failed: {result.failure}", file=sys.stderr)
        return EXIT_DETECTION_FAILED
    if isinstance(result.failure, (LintFailure, CheckerUnavailable)):
        print(str(result.failure), file=sys.stderr)
        return EXIT_LINT_FAILED
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = DocsLintSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your environment or .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level)

    try:
        if args.command == "detect":
            return _cmd_detect(args, settings)
        if args.command == "lint":
            return _cmd_lint(args, settings)
        if args.command == "run":
            return _cmd_run(args, settings)

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_USAGE

    except DetectionFailure as e:
        logger.error("Change detection failed", extra={"error": str(e)})
        print(f"Change detection failed: {e}", file=sys.stderr)
        return EXIT_DETECTION_FAILED

    except LintFailure as e:
        _print_report(e.report)
        print(str(e), file=sys.stderr)
        return EXIT_LINT_FAILED

    except CheckerUnavailable as e:
        logger.error("Spell checker unavailable", extra={"error": str(e)})
        print(str(e), file=sys.stderr)
        return EXIT_LINT_FAILED

    except ValueError as e:
        logger.error("Invalid input", extra={"error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    except Exception:
        logger.exception("Command failed")
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
