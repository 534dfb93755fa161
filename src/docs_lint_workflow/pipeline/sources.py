"""Changed-path sources.

A source enumerates the files touched by a TriggerEvent. Every source either
returns a complete list or raises DetectionFailure; none of them guesses.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import requests
from github import GithubException

from docs_lint_workflow.pipeline.changes import DetectionFailure
from docs_lint_workflow.pipeline.github.client import GitHubClient
from docs_lint_workflow.pipeline.workflow.events import ChangedFile, EventKind, TriggerEvent

logger = logging.getLogger(__name__)

_NULL_SHA = "0" * 40

_GIT_STATUS_NAMES: dict[str, str] = {
    "A": "added",
    "M": "modified",
    "D": "removed",
    "R": "renamed",
    "C": "copied",
    "T": "changed",
    "U": "unmerged",
}


class ChangedPathSource(Protocol):
    """Enumerate the files changed by an event."""

    def changed_files(self, event: TriggerEvent) -> list[ChangedFile]: ...


def _require_range(event: TriggerEvent) -> tuple[str, str]:
    base, head = event.base_sha, event.head_sha
    if not base or not head:
        raise DetectionFailure("Event carries no base/head commit range to diff")
    if base == _NULL_SHA:
        raise DetectionFailure(
            "Event has no base commit (new branch or deleted ref); cannot compute a diff"
        )
    return base, head


@dataclass(frozen=True, slots=True)
class EventPathsSource:
    """Use the paths already attached to the event (e.g. passed on the CLI)."""

    def changed_files(self, event: TriggerEvent) -> list[ChangedFile]:
        if event.changed_files is None:
            raise DetectionFailure("Event carries no changed paths")
        return list(event.changed_files)


def parse_name_status(output: str) -> list[ChangedFile]:
    """Parse `git diff --name-status` output."""

    files: list[ChangedFile] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t")
        code = parts[0][:1]
        status = _GIT_STATUS_NAMES.get(code, "modified")
        if code in {"R", "C"} and len(parts) >= 3:
            files.append(ChangedFile(path=parts[2], status=status, previous_path=parts[1]))
        elif len(parts) >= 2:
            files.append(ChangedFile(path=parts[1], status=status))
        else:
            raise DetectionFailure(f"Unparseable git diff line: {line!r}")
    return files


@dataclass(frozen=True, slots=True)
class GitDiffSource:
    """Diff two commits in a local checkout.

    Pull requests use the merge-base form (`base...head`) so only the pull
    request's own changes are listed; pushes diff `before` against `after`.
    Path bytes that are not valid UTF-8 come back backslash-escaped.
    """

    repo_root: Path
    git_binary: str = "git"
    timeout_seconds: float = 60.0

    def changed_files(self, event: TriggerEvent) -> list[ChangedFile]:
        base, head = _require_range(event)
        if event.kind is EventKind.PULL_REQUEST:
            revisions = [f"{base}...{head}"]
        else:
            revisions = [base, head]

        cmd = [
            self.git_binary,
            "-c",
            "core.quotePath=false",
            "-C",
            str(self.repo_root),
            "diff",
            "--name-status",
            "-M",
            *revisions,
            "--",
        ]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                encoding="utf-8",
                errors="backslashreplace",
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as e:
            raise DetectionFailure(f"git executable not found: {self.git_binary}") from e
        except subprocess.TimeoutExpired as e:
            raise DetectionFailure(f"git diff timed out after {self.timeout_seconds}s") from e

        if result.returncode != 0:
            # Typical causes: shallow clone without the base commit, force-pushed history.
            raise DetectionFailure(f"git diff failed: {result.stderr.strip()}")

        files = parse_name_status(result.stdout)
        logger.debug(
            "Enumerated changed files with git",
            extra={"revisions": revisions, "file_count": len(files)},
        )
        return files


@dataclass(frozen=True, slots=True)
class GitHubPullRequestSource:
    """List a pull request's files through the GitHub API."""

    github: GitHubClient

    def changed_files(self, event: TriggerEvent) -> list[ChangedFile]:
        if event.pull_number is None:
            raise DetectionFailure("Pull request event carries no pull request number")
        try:
            return self.github.list_pull_request_files(pull_number=event.pull_number)
        except (GithubException, requests.RequestException, ValueError) as e:
            raise DetectionFailure(f"Could not list pull request files: {e}") from e


@dataclass(frozen=True, slots=True)
class GitHubCompareSource:
    """Compare two commits through the GitHub API."""

    github: GitHubClient

    def changed_files(self, event: TriggerEvent) -> list[ChangedFile]:
        base, head = _require_range(event)
        try:
            compared = self.github.compare_files(base=base, head=head)
        except (requests.RequestException, ValueError) as e:
            raise DetectionFailure(f"Could not compare commits: {e}") from e
        if compared.truncated:
            raise DetectionFailure(
                "Commit comparison lists too many files to be complete; use the git source"
            )
        return compared.files


@dataclass(frozen=True, slots=True)
class AutoSource:
    """Pick a source per event.

    Paths attached to the event win. Otherwise the GitHub API is used when a
    client is configured, and a local git diff when it is not.
    """

    repo_root: Path
    github: GitHubClient | None = None
    git_binary: str = "git"

    def select(self, event: TriggerEvent) -> ChangedPathSource:
        if event.changed_files is not None:
            return EventPathsSource()
        if self.github is not None:
            if event.kind is EventKind.PULL_REQUEST:
                return GitHubPullRequestSource(github=self.github)
            return GitHubCompareSource(github=self.github)
        return GitDiffSource(repo_root=self.repo_root, git_binary=self.git_binary)

    def changed_files(self, event: TriggerEvent) -> list[ChangedFile]:
        source = self.select(event)
        logger.info(
            "Enumerating changed files",
            extra={"source": type(source).__name__, **event.describe()},
        )
        return source.changed_files(event)
