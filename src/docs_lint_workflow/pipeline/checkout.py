"""Check out the commit an event points at.

`checked_out` yields a detached worktree at a commit, fetching it from
`origin` when the local clone does not have it yet.

Worktrees share the object store of the main clone, so concurrent runs each
get their own directory without cloning again.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class CheckoutError(RuntimeError):
    """The requested commit could not be checked out."""


def _git(
    repo_root: Path,
    *args: str,
    git_binary: str = "git",
    timeout_seconds: float = 120.0,
) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            [git_binary, "-C", str(repo_root), *args],
            capture_output=True,
            encoding="utf-8",
            errors="backslashreplace",
            timeout=timeout_seconds,
            check=False,
        )
    except FileNotFoundError as e:
        raise CheckoutError(f"git executable not found: {git_binary}") from e
    except subprocess.TimeoutExpired as e:
        raise CheckoutError(f"git {args[0]} timed out after {timeout_seconds}s") from e


def _has_commit(repo_root: Path, commit: str, *, git_binary: str) -> bool:
    result = _git(repo_root, "cat-file", "-e", f"{commit}^{{commit}}", git_binary=git_binary)
    return result.returncode == 0


@contextmanager
def checked_out(
    repo_root: Path,
    commit: str | None,
    *,
    git_binary: str = "git",
    timeout_seconds: float = 120.0,
) -> Iterator[Path]:
    """Yield a temporary detached worktree of `repo_root` at `commit`.

    Raises:
        CheckoutError: if there is no commit, or it cannot be fetched or
            checked out.
    """

    if not commit:
        raise CheckoutError("Event carries no head commit to check out")

    if not _has_commit(repo_root, commit, git_binary=git_binary):
        logger.info("Fetching commit", extra={"commit": commit, "repo_root": str(repo_root)})
        fetched = _git(
            repo_root,
            "fetch",
            "--quiet",
            "origin",
            commit,
            git_binary=git_binary,
            timeout_seconds=timeout_seconds,
        )
        if fetched.returncode != 0:
            raise CheckoutError(f"git fetch {commit} failed: {fetched.stderr.strip()}")

    parent = Path(tempfile.mkdtemp(prefix="docs-lint-"))
    worktree = parent / "checkout"
    added = _git(
        repo_root,
        "worktree",
        "add",
        "--detach",
        "--quiet",
        str(worktree),
        commit,
        git_binary=git_binary,
        timeout_seconds=timeout_seconds,
    )
    if added.returncode != 0:
        shutil.rmtree(parent, ignore_errors=True)
        raise CheckoutError(f"git worktree add {commit} failed: {added.stderr.strip()}")

    logger.debug("Checked out worktree", extra={"commit": commit, "worktree": str(worktree)})
    try:
        yield worktree
    finally:
        removed = _git(
            repo_root, "worktree", "remove", "--force", str(worktree), git_binary=git_binary
        )
        if removed.returncode != 0:
            logger.warning(
                "Failed to remove worktree",
                extra={"worktree": str(worktree), "error": removed.stderr.strip()},
            )
            _git(repo_root, "worktree", "prune", git_binary=git_binary)
        shutil.rmtree(parent, ignore_errors=True)
