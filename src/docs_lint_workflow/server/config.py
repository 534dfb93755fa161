"""Configuration for the webhook server."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field

from docs_lint_workflow.pipeline.config import DocsLintSettings


class ServerSettings(DocsLintSettings):
    """Pipeline settings plus what the webhook server needs.

    Notes:
        - Without DOCS_LINT_GITHUB_TOKEN, changed paths are enumerated with
          `git diff` in the workspace, so the workspace must already contain
          both commits of each delivery.
        - Each run lints a temporary worktree of the workspace at the
          delivery's head commit, fetched from `origin` when missing.
    """

    workspace_path: Path = Field(
        default=Path("."),
        validation_alias="DOCS_LINT_WORKSPACE",
        description="Git clone that deliveries are diffed in and checked out from",
    )
    webhook_secret: str = Field(
        default="",
        validation_alias="DOCS_LINT_WEBHOOK_SECRET",
        description="Shared secret used to verify X-Hub-Signature-256; empty disables checks",
    )
    runs_path: Path = Field(
        default=Path(".docs_lint/runs.json"),
        validation_alias="DOCS_LINT_RUNS_PATH",
        description="Where run records are persisted",
    )
