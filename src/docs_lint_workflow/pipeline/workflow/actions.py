from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from docs_lint_workflow.pipeline.changes import IS_DOC_OUTPUT, DocPathRules, detect_doc_changes
from docs_lint_workflow.pipeline.sources import ChangedPathSource
from docs_lint_workflow.pipeline.typos import LintFailure, SpellChecker

from .events import TriggerEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StageResult:
    ok: bool
    message: str
    outputs: dict[str, str] = field(default_factory=dict)
    details: dict[str, object] | None = None


class Stage(Protocol):
    """A deterministic step of the pipeline.

    Stages only communicate through `StageResult.outputs`, the same way CI jobs
    only share their declared string outputs.
    """

    def execute(self, event: TriggerEvent) -> StageResult: ...


@dataclass(frozen=True, slots=True)
class DetectDocChanges(Stage):
    """Enumerate the event's changed files and export `isDoc`.

    Raises:
        DetectionFailure: if the source cannot enumerate the diff.
    """

    source: ChangedPathSource
    rules: DocPathRules = field(default_factory=DocPathRules)

    def execute(self, event: TriggerEvent) -> StageResult:
        files = self.source.changed_files(event)
        flag = detect_doc_changes(files, self.rules)
        logger.info(
            "Change detection finished",
            extra={
                "is_doc": flag.is_doc,
                "file_count": len(files),
                "doc_paths": list(flag.doc_paths),
            },
        )
        return StageResult(
            ok=True,
            message="Documentation changed" if flag.is_doc else "No documentation changes",
            outputs={IS_DOC_OUTPUT: flag.as_output()},
            details={"doc_paths": list(flag.doc_paths), "file_count": len(files)},
        )


@dataclass(frozen=True, slots=True)
class LintDocs(Stage):
    """Run the spell checker over the documentation targets.

    Raises:
        LintFailure: if the checker reports any violation.
        CheckerUnavailable: if the checker cannot run.
    """

    checker: SpellChecker
    root: Path
    targets: Sequence[str] = ("./doc", "./*.md")

    def execute(self, _event: TriggerEvent) -> StageResult:
        return self.lint()

    def lint(self) -> StageResult:
        report = self.checker.check(root=self.root, targets=list(self.targets))
        if not report.passed:
            for violation in report.violations:
                logger.warning("Spelling violation", extra={"violation": violation.format()})
            raise LintFailure(report)
        return StageResult(
            ok=True,
            message="No spelling violations",
            details={"targets": list(report.targets)},
        )
