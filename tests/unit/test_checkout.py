"""Unit tests for per-run worktree checkouts."""

from __future__ import annotations

import pytest

from docs_lint_workflow.pipeline.checkout import CheckoutError, checked_out


def test_checked_out_yields_the_commit_and_cleans_up(git_repo) -> None:
    readme = git_repo.path / "README.md"
    readme.write_text("old\n", encoding="utf-8")
    first = git_repo.commit_all("first")
    readme.write_text("new\n", encoding="utf-8")
    git_repo.commit_all("second")

    with checked_out(git_repo.path, first) as root:
        assert (root / "README.md").read_text(encoding="utf-8") == "old\n"
        assert root != git_repo.path

    assert not root.exists()
    assert readme.read_text(encoding="utf-8") == "new\n"
    assert len(git_repo.run("worktree", "list").splitlines()) == 1


def test_checked_out_requires_a_commit(git_repo) -> None:
    with pytest.raises(CheckoutError, match="no head commit"):
        with checked_out(git_repo.path, None):
            pass


def test_checked_out_fails_for_unknown_commit_without_remote(git_repo) -> None:
    (git_repo.path / "README.md").write_text("x\n", encoding="utf-8")
    git_repo.commit_all("initial")

    with pytest.raises(CheckoutError, match="git fetch"):
        with checked_out(git_repo.path, "f" * 40):
            pass
