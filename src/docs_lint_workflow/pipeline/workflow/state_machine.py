from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path


class PipelineState(str, Enum):
    PENDING = "pending"
    DETECTING = "detecting"
    SKIPPED = "skipped"
    LINTING = "linting"
    PASSED = "passed"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.PENDING: {PipelineState.DETECTING},
    PipelineState.DETECTING: {
        PipelineState.SKIPPED,
        PipelineState.LINTING,
        PipelineState.FAILED,
    },
    PipelineState.LINTING: {PipelineState.PASSED, PipelineState.FAILED},
    PipelineState.SKIPPED: set(),
    PipelineState.PASSED: set(),
    PipelineState.FAILED: set(),
}

TERMINAL_STATES: frozenset[PipelineState] = frozenset(
    {PipelineState.SKIPPED, PipelineState.PASSED, PipelineState.FAILED}
)
SUCCESS_STATES: frozenset[PipelineState] = frozenset(
    {PipelineState.SKIPPED, PipelineState.PASSED}
)


class IllegalTransitionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class RunSnapshot:
    """Where a pipeline run is, plus what it has learned so far.

    `is_doc` stays None until change detection has completed.
    """

    state: PipelineState = PipelineState.PENDING
    is_doc: bool | None = None
    doc_paths: tuple[str, ...] = ()
    violation_count: int = 0
    error: str | None = None

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def succeeded(self) -> bool:
        return self.state in SUCCESS_STATES

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {
            "state": self.state.value,
            "is_doc": self.is_doc,
            "doc_paths": list(self.doc_paths),
            "violation_count": self.violation_count,
        }
        if self.error is not None:
            out["error"] = self.error
        return out

    @staticmethod
    def from_json(obj: dict[str, object]) -> RunSnapshot:
        state_raw = obj.get("state")
        state = PipelineState(state_raw) if isinstance(state_raw, str) else PipelineState.PENDING
        is_doc_raw = obj.get("is_doc")
        paths_raw = obj.get("doc_paths")
        count_raw = obj.get("violation_count")
        error_raw = obj.get("error")
        return RunSnapshot(
            state=state,
            is_doc=is_doc_raw if isinstance(is_doc_raw, bool) else None,
            doc_paths=tuple(p for p in paths_raw if isinstance(p, str))
            if isinstance(paths_raw, list)
            else (),
            violation_count=count_raw if isinstance(count_raw, int) else 0,
            error=error_raw if isinstance(error_raw, str) else None,
        )


def transition(*, current: RunSnapshot, to: PipelineState) -> RunSnapshot:
    allowed = ALLOWED_TRANSITIONS.get(current.state, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.state.value} -> {to.value}")
    return replace(current, state=to)


class PipelineStateStore:
    """Persist the latest run snapshot so a run can be inspected afterwards."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> RunSnapshot:
        if not self._path.exists():
            return RunSnapshot()
        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            return RunSnapshot()
        return RunSnapshot.from_json(raw)

    def save(self, snapshot: RunSnapshot) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(snapshot.to_json(), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
