"""Configuration for the docs lint pipeline.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

A GitHub token is only needed for the GitHub API changed-path sources. To avoid
collisions with the token the CI platform injects as `GITHUB_TOKEN`, this
project uses a dedicated variable: `DOCS_LINT_GITHUB_TOKEN`.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docs_lint_workflow.pipeline.typos import is_absolute_target


def split_list(value: str) -> list[str]:
    """Split a comma and/or whitespace separated setting into its items."""

    return [part for part in re.split(r"[,\s]+", value.strip()) if part]


class DocsLintSettings(BaseSettings):
    """Settings for the docs lint pipeline.

    Environment variables:
    - LOG_LEVEL                         (optional)
    - DOCS_LINT_GITHUB_TOKEN            (optional; enables GitHub API sources)
    - GITHUB_BASE_URL                   (optional)
    - GITHUB_REPOSITORY                 (optional; set by GitHub Actions)
    - DOCS_LINT_PUSH_BRANCHES           (optional)
    - DOCS_LINT_PR_TYPES                (optional)
    - DOCS_LINT_DOC_PREFIXES            (optional)
    - DOCS_LINT_ROOT_PATTERNS           (optional)
    - DOCS_LINT_FILES                   (optional)
    - DOCS_LINT_TYPOS_BIN               (optional)
    - DOCS_LINT_TYPOS_TIMEOUT_SECONDS   (optional)
    - DOCS_LINT_STATE_PATH              (optional)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `DocsLintSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    github_token: str = Field(
        default="",
        validation_alias="DOCS_LINT_GITHUB_TOKEN",
        description="GitHub token used by the GitHub API changed-path sources",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )
    repository: str = Field(
        default="",
        validation_alias="GITHUB_REPOSITORY",
        description="Repository in the form 'owner/repo'",
    )

    push_branches: str = Field(
        default="main,extensions",
        validation_alias="DOCS_LINT_PUSH_BRANCHES",
        description="Branches whose pushes trigger the pipeline",
    )
    pull_request_types: str = Field(
        default="opened,synchronize,reopened,ready_for_review",
        validation_alias="DOCS_LINT_PR_TYPES",
        description="Pull request actions that trigger the pipeline",
    )

    doc_prefixes: str = Field(
        default="doc/",
        validation_alias="DOCS_LINT_DOC_PREFIXES",
        description="Directory prefixes whose files count as documentation",
    )
    root_patterns: str = Field(
        default="*.md",
        validation_alias="DOCS_LINT_ROOT_PATTERNS",
        description="Glob patterns matched against repository-root files only",
    )

    lint_files: str = Field(
        default="./doc ./*.md",
        validation_alias="DOCS_LINT_FILES",
        description="Targets handed to the spell checker",
    )
    typos_binary: str = Field(
        default="typos",
        validation_alias="DOCS_LINT_TYPOS_BIN",
        description="Name or path of the typos executable",
    )
    typos_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        validation_alias="DOCS_LINT_TYPOS_TIMEOUT_SECONDS",
        description="Timeout for a single typos invocation",
    )

    run_state_path: Path = Field(
        default=Path(".docs_lint/state.json"),
        validation_alias="DOCS_LINT_STATE_PATH",
        description="Path where the last pipeline run snapshot is persisted",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _require_rules_and_targets(self) -> DocsLintSettings:
        if not split_list(self.doc_prefixes) and not split_list(self.root_patterns):
            raise ValueError(
                "At least one of DOCS_LINT_DOC_PREFIXES or DOCS_LINT_ROOT_PATTERNS is required"
            )
        lint_files = split_list(self.lint_files)
        if not lint_files:
            raise ValueError("DOCS_LINT_FILES must name at least one target")
        absolute = [t for t in lint_files if is_absolute_target(t)]
        if absolute:
            raise ValueError(
                f"DOCS_LINT_FILES targets must be relative to the checkout: {absolute}"
            )
        return self

    def parsed_push_branches(self) -> list[str]:
        return split_list(self.push_branches)

    def parsed_pull_request_types(self) -> list[str]:
        return split_list(self.pull_request_types)

    def parsed_doc_prefixes(self) -> list[str]:
        return split_list(self.doc_prefixes)

    def parsed_root_patterns(self) -> list[str]:
        return split_list(self.root_patterns)

    def parsed_lint_files(self) -> list[str]:
        return split_list(self.lint_files)

    @property
    def has_github_api(self) -> bool:
        """True when both a token and a repository are configured."""

        return bool(self.github_token.strip() and self.repository.strip())
