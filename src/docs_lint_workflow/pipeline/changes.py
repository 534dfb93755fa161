"""Decide whether a set of changed paths touches documentation.

Matching rules:
- paths are compared in POSIX form with any leading `./` or `/` removed
- a prefix such as `doc/` matches every file below it, at any depth
- root patterns such as `*.md` only match files at the repository root
- matching is case-sensitive
- a rename matches when either its new or its previous path matches
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase

from docs_lint_workflow.pipeline.workflow.events import ChangedFile

IS_DOC_OUTPUT = "isDoc"

DEFAULT_DOC_PREFIXES: tuple[str, ...] = ("doc/",)
DEFAULT_ROOT_PATTERNS: tuple[str, ...] = ("*.md",)


class DetectionFailure(RuntimeError):
    """The changed paths for an event could not be enumerated."""


def normalize_path(path: str) -> str:
    norm = path.strip().replace("\\", "/")
    while norm.startswith("./"):
        norm = norm[2:]
    return norm.lstrip("/")


def _normalize_prefix(prefix: str) -> str:
    norm = normalize_path(prefix).rstrip("/")
    return f"{norm}/" if norm else ""


@dataclass(frozen=True, slots=True)
class DocPathRules:
    prefixes: tuple[str, ...] = DEFAULT_DOC_PREFIXES
    root_patterns: tuple[str, ...] = DEFAULT_ROOT_PATTERNS

    @staticmethod
    def from_lists(*, prefixes: Iterable[str], root_patterns: Iterable[str]) -> DocPathRules:
        norm_prefixes = tuple(p for p in (_normalize_prefix(x) for x in prefixes) if p)
        norm_patterns = tuple(p.strip() for p in root_patterns if p.strip())
        if not norm_prefixes and not norm_patterns:
            raise ValueError("At least one documentation prefix or root pattern is required")
        return DocPathRules(prefixes=norm_prefixes, root_patterns=norm_patterns)

    def matches(self, path: str) -> bool:
        norm = normalize_path(path)
        if not norm or norm.endswith("/"):
            return False
        if any(norm.startswith(prefix) for prefix in self.prefixes):
            return True
        if "/" in norm:
            return False
        return any(fnmatchcase(norm, pattern) for pattern in self.root_patterns)


@dataclass(frozen=True, slots=True)
class ChangeFlag:
    """The single boolean handed from change detection to the doc linter."""

    is_doc: bool
    doc_paths: tuple[str, ...] = ()

    def as_output(self) -> str:
        return "true" if self.is_doc else "false"


def detect_doc_changes(
    files: Sequence[ChangedFile] | None, rules: DocPathRules | None = None
) -> ChangeFlag:
    """Compute the change flag for an enumerated list of changed files.

    Raises:
        DetectionFailure: if `files` is None (the diff was never enumerated).
    """

    if files is None:
        raise DetectionFailure("Changed paths were not enumerated for this event")

    active = rules or DocPathRules()
    matched: list[str] = []
    for changed in files:
        for candidate in (changed.path, changed.previous_path):
            if candidate and active.matches(candidate):
                matched.append(normalize_path(candidate))
                break

    # Stable, de-duplicated order for reporting.
    doc_paths = tuple(dict.fromkeys(matched))
    return ChangeFlag(is_doc=bool(doc_paths), doc_paths=doc_paths)
