"""Unit tests for changed-path sources."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests
from github import GithubException

from docs_lint_workflow.pipeline.changes import DetectionFailure
from docs_lint_workflow.pipeline.github.client import ComparedFiles, GitHubClient
from docs_lint_workflow.pipeline.sources import (
    AutoSource,
    EventPathsSource,
    GitDiffSource,
    GitHubCompareSource,
    GitHubPullRequestSource,
    parse_name_status,
)
from docs_lint_workflow.pipeline.workflow.actions import DetectDocChanges, LintDocs
from docs_lint_workflow.pipeline.workflow.events import ChangedFile, EventKind, TriggerEvent
from docs_lint_workflow.pipeline.workflow.runner import DocsLintPipeline
from docs_lint_workflow.pipeline.workflow.state_machine import PipelineState, PipelineStateStore


def _push(base: str | None = "a" * 40, head: str | None = "b" * 40) -> TriggerEvent:
    return TriggerEvent(kind=EventKind.PUSH, branch="main", base_sha=base, head_sha=head)


def test_parse_name_status_handles_renames_and_deletes() -> None:
    output = "M\tREADME.md\nA\tdoc/new.md\nD\tdoc/old.md\nR087\tdoc/a.md\tguide/a.md\n\n"
    assert parse_name_status(output) == [
        ChangedFile(path="README.md", status="modified"),
        ChangedFile(path="doc/new.md", status="added"),
        ChangedFile(path="doc/old.md", status="removed"),
        ChangedFile(path="guide/a.md", status="renamed", previous_path="doc/a.md"),
    ]


def test_parse_name_status_rejects_garbage() -> None:
    with pytest.raises(DetectionFailure):
        parse_name_status("nonsense-without-tabs\n")


def test_event_paths_source_returns_attached_paths() -> None:
    event = _push().with_changed_files([ChangedFile(path="doc/a.md")])
    assert EventPathsSource().changed_files(event) == [ChangedFile(path="doc/a.md")]


def test_event_paths_source_requires_paths() -> None:
    with pytest.raises(DetectionFailure):
        EventPathsSource().changed_files(_push())


def test_git_diff_source_requires_a_range(tmp_path: Path) -> None:
    source = GitDiffSource(repo_root=tmp_path)
    with pytest.raises(DetectionFailure):
        source.changed_files(_push(base=None))


def test_git_diff_source_rejects_null_base(tmp_path: Path) -> None:
    source = GitDiffSource(repo_root=tmp_path)
    with pytest.raises(DetectionFailure, match="no base commit"):
        source.changed_files(_push(base="0" * 40))


def test_git_diff_source_reports_missing_git(tmp_path: Path) -> None:
    source = GitDiffSource(repo_root=tmp_path, git_binary="definitely-not-git-xyz")
    with pytest.raises(DetectionFailure, match="not found"):
        source.changed_files(_push())


def test_git_diff_source_lists_push_changes(git_repo) -> None:
    (git_repo.path / "src").mkdir()
    (git_repo.path / "src" / "app.go").write_text("package main\n", encoding="utf-8")
    base = git_repo.commit_all("initial")

    (git_repo.path / "doc").mkdir()
    (git_repo.path / "doc" / "intro.md").write_text("# Intro\n", encoding="utf-8")
    (git_repo.path / "src" / "app.go").write_text("package main\n\nfunc main() {}\n", "utf-8")
    head = git_repo.commit_all("add docs")

    files = GitDiffSource(repo_root=git_repo.path).changed_files(_push(base=base, head=head))

    assert sorted(files, key=lambda f: f.path) == [
        ChangedFile(path="doc/intro.md", status="added"),
        ChangedFile(path="src/app.go", status="modified"),
    ]


def test_git_diff_source_uses_merge_base_for_pull_requests(git_repo) -> None:
    (git_repo.path / "README.md").write_text("# Project\n", encoding="utf-8")
    base = git_repo.commit_all("initial")
    git_repo.run("checkout", "-q", "-b", "feature")
    (git_repo.path / "doc").mkdir()
    (git_repo.path / "doc" / "guide.md").write_text("# Guide\n", encoding="utf-8")
    head = git_repo.commit_all("guide")

    # Advance the base branch; its change must not show up in the PR diff.
    git_repo.run("checkout", "-q", "-")
    (git_repo.path / "src.txt").write_text("x\n", encoding="utf-8")
    new_base = git_repo.commit_all("unrelated")
    assert new_base != base

    event = TriggerEvent(
        kind=EventKind.PULL_REQUEST,
        branch="main",
        action="opened",
        base_sha=new_base,
        head_sha=head,
    )
    files = GitDiffSource(repo_root=git_repo.path).changed_files(event)
    assert files == [ChangedFile(path="doc/guide.md", status="added")]


def test_git_diff_source_fails_on_unknown_commit(git_repo) -> None:
    (git_repo.path / "README.md").write_text("# Project\n", encoding="utf-8")
    head = git_repo.commit_all("initial")

    with pytest.raises(DetectionFailure, match="git diff failed"):
        GitDiffSource(repo_root=git_repo.path).changed_files(_push(base="f" * 40, head=head))


_LATIN1_DOC = os.fsdecode(b"doc/caf\xe9.md")

latin1_names = pytest.mark.skipif(
    sys.platform != "linux", reason="needs a filesystem that stores raw byte names"
)


@latin1_names
def test_git_diff_source_escapes_non_utf8_paths(git_repo) -> None:
    (git_repo.path / "README.md").write_text("# Project\n", encoding="utf-8")
    base = git_repo.commit_all("initial")
    (git_repo.path / "doc").mkdir()
    (git_repo.path / _LATIN1_DOC).write_text("# Cafe\n", encoding="utf-8")
    head = git_repo.commit_all("latin-1 file name")

    files = GitDiffSource(repo_root=git_repo.path).changed_files(_push(base=base, head=head))

    assert files == [ChangedFile(path="doc/caf\\xe9.md", status="added")]


@latin1_names
def test_pipeline_with_non_utf8_path_reaches_a_terminal_state(
    tmp_path: Path, git_repo, fake_checker
) -> None:
    (git_repo.path / "README.md").write_text("# Project\n", encoding="utf-8")
    base = git_repo.commit_all("initial")
    (git_repo.path / "doc").mkdir()
    (git_repo.path / _LATIN1_DOC).write_text("# Cafe\n", encoding="utf-8")
    head = git_repo.commit_all("latin-1 file name")
    store = PipelineStateStore(tmp_path / "state.json")
    pipeline = DocsLintPipeline(
        detector=DetectDocChanges(source=GitDiffSource(repo_root=git_repo.path)),
        linter=LintDocs(checker=fake_checker, root=git_repo.path),
        store=store,
    )

    result = pipeline.run(_push(base=base, head=head))

    assert result.outputs == {"isDoc": "true"}
    assert result.snapshot.doc_paths == ("doc/caf\\xe9.md",)
    assert store.load().state is PipelineState.PASSED


def test_pull_request_source_uses_github_files() -> None:
    github = Mock(spec=GitHubClient)
    github.list_pull_request_files.return_value = [ChangedFile(path="README.md")]
    event = TriggerEvent(kind=EventKind.PULL_REQUEST, branch="main", action="opened", pull_number=5)

    files = GitHubPullRequestSource(github=github).changed_files(event)

    assert files == [ChangedFile(path="README.md")]
    github.list_pull_request_files.assert_called_once_with(pull_number=5)


def test_pull_request_source_wraps_api_errors() -> None:
    github = Mock(spec=GitHubClient)
    github.list_pull_request_files.side_effect = GithubException(502, {"message": "boom"}, None)
    event = TriggerEvent(kind=EventKind.PULL_REQUEST, branch="main", action="opened", pull_number=5)

    with pytest.raises(DetectionFailure):
        GitHubPullRequestSource(github=github).changed_files(event)


def test_pull_request_source_requires_number() -> None:
    github = Mock(spec=GitHubClient)
    event = TriggerEvent(kind=EventKind.PULL_REQUEST, branch="main", action="opened")
    with pytest.raises(DetectionFailure):
        GitHubPullRequestSource(github=github).changed_files(event)


def test_compare_source_returns_files() -> None:
    github = Mock(spec=GitHubClient)
    github.compare_files.return_value = ComparedFiles(
        files=[ChangedFile(path="doc/a.md")], truncated=False
    )
    assert GitHubCompareSource(github=github).changed_files(_push()) == [
        ChangedFile(path="doc/a.md")
    ]
    github.compare_files.assert_called_once_with(base="a" * 40, head="b" * 40)


def test_compare_source_refuses_truncated_results() -> None:
    github = Mock(spec=GitHubClient)
    github.compare_files.return_value = ComparedFiles(files=[], truncated=True)
    with pytest.raises(DetectionFailure, match="too many files"):
        GitHubCompareSource(github=github).changed_files(_push())


def test_compare_source_wraps_http_errors() -> None:
    github = Mock(spec=GitHubClient)
    github.compare_files.side_effect = requests.HTTPError("404 Not Found")
    with pytest.raises(DetectionFailure):
        GitHubCompareSource(github=github).changed_files(_push())


def test_auto_source_prefers_attached_paths(tmp_path: Path) -> None:
    github = Mock(spec=GitHubClient)
    source = AutoSource(repo_root=tmp_path, github=github)
    event = _push().with_changed_files([])
    assert isinstance(source.select(event), EventPathsSource)


def test_auto_source_selects_github_sources_by_event_kind(tmp_path: Path) -> None:
    github = Mock(spec=GitHubClient)
    source = AutoSource(repo_root=tmp_path, github=github)
    pr = TriggerEvent(kind=EventKind.PULL_REQUEST, branch="main", action="opened", pull_number=1)
    assert isinstance(source.select(pr), GitHubPullRequestSource)
    assert isinstance(source.select(_push()), GitHubCompareSource)


def test_auto_source_falls_back_to_git(tmp_path: Path) -> None:
    source = AutoSource(repo_root=tmp_path)
    selected = source.select(_push())
    assert isinstance(selected, GitDiffSource)
    assert selected.repo_root == tmp_path
