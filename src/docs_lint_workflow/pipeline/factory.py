"""Factory for building pipeline components from settings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import requests
from github import GithubException

from docs_lint_workflow.pipeline.changes import DetectionFailure, DocPathRules
from docs_lint_workflow.pipeline.config import DocsLintSettings
from docs_lint_workflow.pipeline.github.client import GitHubClient
from docs_lint_workflow.pipeline.sources import (
    AutoSource,
    ChangedPathSource,
    EventPathsSource,
    GitDiffSource,
    GitHubCompareSource,
    GitHubPullRequestSource,
)
from docs_lint_workflow.pipeline.typos import TyposChecker
from docs_lint_workflow.pipeline.workflow.actions import DetectDocChanges, LintDocs
from docs_lint_workflow.pipeline.workflow.events import EventKind, TriggerFilter
from docs_lint_workflow.pipeline.workflow.runner import DocsLintPipeline
from docs_lint_workflow.pipeline.workflow.state_machine import PipelineStateStore

logger = logging.getLogger(__name__)

SourceKind = Literal["auto", "static", "git", "github"]


class PipelineFactory:
    """Build sources, stages and pipelines from one settings object."""

    def __init__(self, settings: DocsLintSettings) -> None:
        self._settings = settings

    def trigger_filter(self) -> TriggerFilter:
        return TriggerFilter.from_lists(
            push_branches=self._settings.parsed_push_branches(),
            pull_request_types=self._settings.parsed_pull_request_types(),
        )

    def rules(self) -> DocPathRules:
        return DocPathRules.from_lists(
            prefixes=self._settings.parsed_doc_prefixes(),
            root_patterns=self._settings.parsed_root_patterns(),
        )

    def checker(self) -> TyposChecker:
        return TyposChecker(
            binary=self._settings.typos_binary,
            timeout_seconds=self._settings.typos_timeout_seconds,
        )

    def github_client(self, *, repository: str | None = None) -> GitHubClient:
        """Connect to GitHub.

        Raises:
            ValueError: if no token or repository is configured.
            DetectionFailure: if the repository cannot be reached.
        """

        repo = (repository or self._settings.repository).strip()
        if not self._settings.github_token.strip():
            raise ValueError("DOCS_LINT_GITHUB_TOKEN is required for the GitHub source")
        if not repo:
            raise ValueError("GITHUB_REPOSITORY is required for the GitHub source")
        try:
            return GitHubClient(
                token=self._settings.github_token,
                repository=repo,
                base_url=self._settings.github_base_url,
            )
        except (GithubException, requests.RequestException) as e:
            raise DetectionFailure(f"Could not connect to GitHub repository {repo}: {e}") from e

    def source(
        self,
        kind: SourceKind,
        *,
        root: Path,
        event_kind: EventKind,
        github: GitHubClient | None = None,
    ) -> ChangedPathSource:
        logger.debug("Building changed-path source", extra={"source_kind": kind})

        if kind == "static":
            return EventPathsSource()
        if kind == "git":
            return GitDiffSource(repo_root=root)
        if kind == "github":
            if github is None:
                raise ValueError("A GitHub client is required for the GitHub source")
            if event_kind is EventKind.PULL_REQUEST:
                return GitHubPullRequestSource(github=github)
            return GitHubCompareSource(github=github)
        if kind == "auto":
            return AutoSource(repo_root=root, github=github)
        raise ValueError(f"Unsupported changed-path source: {kind}")

    def detector(self, source: ChangedPathSource) -> DetectDocChanges:
        return DetectDocChanges(source=source, rules=self.rules())

    def linter(self, *, root: Path, targets: list[str] | None = None) -> LintDocs:
        return LintDocs(
            checker=self.checker(),
            root=root,
            targets=tuple(targets or self._settings.parsed_lint_files()),
        )

    def pipeline(
        self,
        source: ChangedPathSource,
        *,
        root: Path,
        store: PipelineStateStore | None = None,
    ) -> DocsLintPipeline:
        return DocsLintPipeline(
            detector=self.detector(source),
            linter=self.linter(root=root),
            trigger_filter=self.trigger_filter(),
            store=store,
        )
