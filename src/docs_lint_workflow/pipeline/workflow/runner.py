"""Run the two-stage docs pipeline for a single trigger event.

PENDING -> DETECTING -> {SKIPPED | LINTING | FAILED}; LINTING -> {PASSED | FAILED}.

Every transition goes through :func:`transition` and, when a store is given,
is persisted so an interrupted run can be inspected. There are no retries:
the first stage failure ends the run. Errors other than DetectionFailure,
LintFailure and CheckerUnavailable still leave the run FAILED, then propagate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from docs_lint_workflow.pipeline.changes import DetectionFailure
from docs_lint_workflow.pipeline.typos import CheckerUnavailable, LintFailure, LintReport

from .actions import Stage, StageResult
from .events import TriggerEvent, TriggerFilter
from .policy import decide_after_detection
from .state_machine import PipelineState, PipelineStateStore, RunSnapshot, transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PipelineResult:
    triggered: bool
    snapshot: RunSnapshot
    outputs: dict[str, str] | None = None
    lint_report: LintReport | None = None
    failure: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return not self.triggered or self.snapshot.succeeded


class DocsLintPipeline:
    """Change detection followed by the gated doc linter."""

    def __init__(
        self,
        *,
        detector: Stage,
        linter: Stage,
        trigger_filter: TriggerFilter | None = None,
        store: PipelineStateStore | None = None,
    ) -> None:
        self._detector = detector
        self._linter = linter
        self._filter = trigger_filter or TriggerFilter()
        self._store = store

    def _advance(self, current: RunSnapshot, to: PipelineState, **changes: object) -> RunSnapshot:
        snapshot = transition(current=current, to=to)
        if changes:
            snapshot = replace(snapshot, **changes)
        if self._store is not None:
            self._store.save(snapshot)
        logger.debug("Pipeline state changed", extra={"state": snapshot.state.value})
        return snapshot

    def _abort(self, current: RunSnapshot, error: Exception) -> None:
        """Move a run whose stage raised unexpectedly to FAILED."""
        if current.terminal:
            return
        logger.error(
            "Pipeline stage raised unexpectedly",
            extra={"state": current.state.value, "error": repr(error)},
        )
        self._advance(current, PipelineState.FAILED, error=f"{type(error).__name__}: {error}")

    def run(self, event: TriggerEvent) -> PipelineResult:
        if not self._filter.matches(event):
            logger.info("Event does not trigger the docs pipeline", extra=event.describe())
            return PipelineResult(triggered=False, snapshot=RunSnapshot())

        snapshot = RunSnapshot()
        if self._store is not None:
            self._store.save(snapshot)

        snapshot = self._advance(snapshot, PipelineState.DETECTING)
        try:
            detected: StageResult = self._detector.execute(event)
        except DetectionFailure as e:
            logger.error("Change detection failed", extra={"error": str(e)})
            snapshot = self._advance(snapshot, PipelineState.FAILED, error=str(e))
            return PipelineResult(triggered=True, snapshot=snapshot, failure=e)
        except Exception as e:
            self._abort(snapshot, e)
            raise

        outputs = dict(detected.outputs)
        details = detected.details or {}
        doc_paths_raw = details.get("doc_paths")
        doc_paths = (
            tuple(str(p) for p in doc_paths_raw) if isinstance(doc_paths_raw, list) else ()
        )

        next_state = decide_after_detection(outputs)
        snapshot = self._advance(
            snapshot,
            next_state,
            is_doc=next_state is PipelineState.LINTING,
            doc_paths=doc_paths,
        )
        if next_state is PipelineState.SKIPPED:
            logger.info("No documentation changes; doc lint skipped")
            return PipelineResult(triggered=True, snapshot=snapshot, outputs=outputs)

        try:
            self._linter.execute(event)
        except LintFailure as e:
            snapshot = self._advance(
                snapshot,
                PipelineState.FAILED,
                violation_count=len(e.report.violations),
                error=str(e),
            )
            return PipelineResult(
                triggered=True,
                snapshot=snapshot,
                outputs=outputs,
                lint_report=e.report,
                failure=e,
            )
        except CheckerUnavailable as e:
            logger.error("Spell checker unavailable", extra={"error": str(e)})
            snapshot = self._advance(snapshot, PipelineState.FAILED, error=str(e))
            return PipelineResult(triggered=True, snapshot=snapshot, outputs=outputs, failure=e)
        except Exception as e:
            self._abort(snapshot, e)
            raise

        snapshot = self._advance(snapshot, PipelineState.PASSED)
        logger.info("Doc lint passed")
        return PipelineResult(triggered=True, snapshot=snapshot, outputs=outputs)
