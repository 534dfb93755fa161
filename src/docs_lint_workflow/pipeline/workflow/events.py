"""Trigger events and the trigger filter.

The CI platform's ambient context (event name, ref, webhook payload) is turned
into an immutable :class:`TriggerEvent` at the program edge. Everything past
that point takes the event as an explicit argument.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PUSH_BRANCHES: tuple[str, ...] = ("main", "extensions")
DEFAULT_PULL_REQUEST_TYPES: tuple[str, ...] = (
    "opened",
    "synchronize",
    "reopened",
    "ready_for_review",
)

_BRANCH_REF_PREFIX = "refs/heads/"


class EventKind(str, Enum):
    PUSH = "push"
    PULL_REQUEST = "pull_request"


class UnsupportedEventError(ValueError):
    """Raised for CI events this pipeline has no mapping for."""


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """A single path touched by the triggering event."""

    path: str
    status: str = "modified"
    previous_path: str | None = None


@dataclass(frozen=True, slots=True)
class TriggerEvent:
    """A signal emitted by the CI platform.

    `changed_files` is None until a changed-path source has enumerated the
    diff; an empty tuple means the event touched nothing.
    """

    kind: EventKind
    branch: str
    action: str | None = None
    changed_files: tuple[ChangedFile, ...] | None = None
    base_sha: str | None = None
    head_sha: str | None = None
    pull_number: int | None = None
    repository: str | None = None

    def with_changed_files(self, files: Iterable[ChangedFile]) -> TriggerEvent:
        return replace(self, changed_files=tuple(files))

    def describe(self) -> dict[str, object]:
        """Compact representation for logs and run records."""

        out: dict[str, object] = {"kind": self.kind.value, "branch": self.branch}
        if self.action is not None:
            out["action"] = self.action
        if self.pull_number is not None:
            out["pull_number"] = self.pull_number
        if self.repository is not None:
            out["repository"] = self.repository
        return out


@dataclass(frozen=True, slots=True)
class TriggerFilter:
    """Which events start the pipeline.

    Pushes are filtered by branch, pull requests by action type.
    """

    push_branches: frozenset[str] = frozenset(DEFAULT_PUSH_BRANCHES)
    pull_request_types: frozenset[str] = frozenset(DEFAULT_PULL_REQUEST_TYPES)

    @staticmethod
    def from_lists(
        *, push_branches: Iterable[str], pull_request_types: Iterable[str]
    ) -> TriggerFilter:
        return TriggerFilter(
            push_branches=frozenset(b.strip() for b in push_branches if b.strip()),
            pull_request_types=frozenset(t.strip() for t in pull_request_types if t.strip()),
        )

    def matches(self, event: TriggerEvent) -> bool:
        if event.kind is EventKind.PUSH:
            return event.branch in self.push_branches
        if event.kind is EventKind.PULL_REQUEST:
            return event.action is not None and event.action in self.pull_request_types
        return False


def _str_or_none(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _branch_from_ref(ref: str) -> str:
    if ref.startswith(_BRANCH_REF_PREFIX):
        return ref[len(_BRANCH_REF_PREFIX) :]
    return ref


def event_from_github_payload(
    event_name: str, payload: Mapping[str, Any], *, ref_name: str | None = None
) -> TriggerEvent:
    """Build a TriggerEvent from a GitHub webhook payload.

    Push events take the branch from `ref` (falling back to `ref_name`) and the
    before/after SHAs as the diff range. Pull request events take the action,
    the base branch, and the base/head SHAs of the pull request.
    """

    repo_raw = payload.get("repository")
    repository = (
        _str_or_none(repo_raw.get("full_name")) if isinstance(repo_raw, Mapping) else None
    )

    if event_name == EventKind.PUSH.value:
        ref = _str_or_none(payload.get("ref")) or ref_name or ""
        branch = _branch_from_ref(ref)
        if not branch:
            raise ValueError("Push payload is missing 'ref'")
        return TriggerEvent(
            kind=EventKind.PUSH,
            branch=branch,
            base_sha=_str_or_none(payload.get("before")),
            head_sha=_str_or_none(payload.get("after")),
            repository=repository,
        )

    if event_name == EventKind.PULL_REQUEST.value:
        pr = payload.get("pull_request")
        if not isinstance(pr, Mapping):
            raise ValueError("Pull request payload is missing 'pull_request'")
        base = pr.get("base") if isinstance(pr.get("base"), Mapping) else {}
        head = pr.get("head") if isinstance(pr.get("head"), Mapping) else {}
        number = pr.get("number", payload.get("number"))
        return TriggerEvent(
            kind=EventKind.PULL_REQUEST,
            branch=_str_or_none(base.get("ref")) or ref_name or "",
            action=_str_or_none(payload.get("action")),
            base_sha=_str_or_none(base.get("sha")),
            head_sha=_str_or_none(head.get("sha")),
            pull_number=number if isinstance(number, int) else None,
            repository=repository,
        )

    raise UnsupportedEventError(f"Unsupported event: {event_name!r}")


def load_event_from_actions_env(environ: Mapping[str, str]) -> TriggerEvent:
    """Read the GitHub Actions context from an environment mapping.

    Uses GITHUB_EVENT_NAME, GITHUB_EVENT_PATH and GITHUB_REF_NAME.
    """

    event_name = environ.get("GITHUB_EVENT_NAME", "").strip()
    if not event_name:
        raise ValueError("GITHUB_EVENT_NAME is not set; pass the event explicitly")

    event_path = environ.get("GITHUB_EVENT_PATH", "").strip()
    payload: dict[str, Any] = {}
    if event_path:
        raw = json.loads(Path(event_path).read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            payload = raw

    event = event_from_github_payload(
        event_name, payload, ref_name=_str_or_none(environ.get("GITHUB_REF_NAME"))
    )
    if event.repository is None:
        repository = _str_or_none(environ.get("GITHUB_REPOSITORY"))
        if repository is not None:
            event = replace(event, repository=repository)

    logger.debug("Loaded trigger event from Actions context", extra=event.describe())
    return event
