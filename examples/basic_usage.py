#!/usr/bin/env python3
"""Programmatic pipeline example.

This demonstrates using the pipeline components directly:

* load settings from `.env`
* diff two commits of a local checkout with git
* run change detection and, when docs changed, the spell check

The checkout and commit range are passed as arguments (not read from `.env`).
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from docs_lint_workflow.pipeline.config import DocsLintSettings
from docs_lint_workflow.pipeline.factory import PipelineFactory
from docs_lint_workflow.pipeline.logging import configure_logging
from docs_lint_workflow.pipeline.workflow.events import EventKind, TriggerEvent


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the docs pipeline (programmatic example).")
    parser.add_argument("--root", default=".", help="Path to the git checkout")
    parser.add_argument("--branch", default="main", help="Branch the push went to")
    parser.add_argument("--base", default="HEAD~1", help="Commit before the push")
    parser.add_argument("--head", default="HEAD", help="Commit after the push")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = DocsLintSettings()
    configure_logging(settings.log_level)

    root = Path(args.root).resolve()
    factory = PipelineFactory(settings)
    pipeline = factory.pipeline(
        factory.source("git", root=root, event_kind=EventKind.PUSH),
        root=root,
    )

    event = TriggerEvent(
        kind=EventKind.PUSH,
        branch=args.branch,
        base_sha=args.base,
        head_sha=args.head,
    )
    result = pipeline.run(event)

    if not result.triggered:
        print(f"Branch {args.branch} does not trigger the docs pipeline")
        return 0

    print(f"isDoc={'true' if result.snapshot.is_doc else 'false'}")
    if result.lint_report is not None:
        for violation in result.lint_report.violations:
            print(violation.format())
    print(f"Pipeline {result.snapshot.state.value}")
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
