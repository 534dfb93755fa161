from __future__ import annotations

from collections.abc import Mapping

from docs_lint_workflow.pipeline.changes import IS_DOC_OUTPUT

from .state_machine import PipelineState


def gate_allows_lint(outputs: Mapping[str, str] | None) -> bool:
    """Gate: `needs.diff.outputs.isDoc == 'true'`.

    Only the exact string "true" opens the gate. Missing outputs (detection
    skipped or failed) and any other value keep it closed.
    """

    if outputs is None:
        return False
    return outputs.get(IS_DOC_OUTPUT) == "true"


def decide_after_detection(outputs: Mapping[str, str] | None) -> PipelineState:
    """Policy: detection outputs -> next pipeline state."""

    return PipelineState.LINTING if gate_allows_lint(outputs) else PipelineState.SKIPPED
