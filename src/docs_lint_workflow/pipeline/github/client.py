"""GitHub API client wrapper for changed-path enumeration.

This wraps PyGithub (pull request files) and a plain REST session (commit
comparisons) so the changed-path sources stay free of HTTP details and tests
can inject fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests
from github import Auth, Github
from github.Repository import Repository

from docs_lint_workflow.pipeline.workflow.events import ChangedFile

logger = logging.getLogger(__name__)

# GitHub stops listing files in a comparison past this count.
COMPARE_FILE_LIMIT = 300


@dataclass(frozen=True, slots=True)
class ComparedFiles:
    files: list[ChangedFile]
    truncated: bool


class GitHubClient:
    """Small wrapper around PyGithub for the operations change detection needs."""

    def __init__(
        self,
        *,
        token: str,
        repository: str,
        base_url: str = "https://api.github.com",
        repo: Repository | None = None,
        github_api: Github | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")
        if not repository:
            raise ValueError("GitHub repository is required")

        self._repository_name = repository
        self._rest_base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "docs-lint-workflow",
            }
        )

        if repo is not None:
            self._repo = repo
            self._github = None
            logger.debug("Using injected Repository instance")
            return

        auth = Auth.Token(token)
        self._github = github_api or Github(auth=auth, base_url=base_url)
        self._repo = self._github.get_repo(repository)
        logger.info(
            "Authenticated with GitHub and connected to repository", extra={"repo": repository}
        )

    @property
    def repository(self) -> str:
        """Return the configured repository name ("owner/repo")."""

        return self._repository_name

    def list_pull_request_files(self, *, pull_number: int) -> list[ChangedFile]:
        """Return every file touched by a pull request."""

        if pull_number <= 0:
            raise ValueError("pull_number must be a positive integer")

        pull = self._repo.get_pull(pull_number)
        files = [
            ChangedFile(
                path=f.filename,
                status=f.status or "modified",
                previous_path=getattr(f, "previous_filename", None) or None,
            )
            for f in pull.get_files()
        ]
        logger.debug(
            "Listed pull request files",
            extra={"pull_number": pull_number, "file_count": len(files)},
        )
        return files

    def compare_files(self, *, base: str, head: str) -> ComparedFiles:
        """Return the files changed between two commits via the compare endpoint."""

        if not base.strip() or not head.strip():
            raise ValueError("base and head are required")

        url = f"{self._rest_base_url}/repos/{self._repository_name}/compare/{base}...{head}"
        resp = self._session.get(url, params={"per_page": COMPARE_FILE_LIMIT}, timeout=30)
        resp.raise_for_status()
        data: dict[str, Any] = resp.json()

        raw_files = data.get("files")
        if not isinstance(raw_files, list):
            raise ValueError("Unexpected compare response: missing files")

        files: list[ChangedFile] = []
        for item in raw_files:
            if not isinstance(item, dict):
                continue
            filename = item.get("filename")
            if not isinstance(filename, str) or not filename:
                continue
            status = item.get("status")
            previous = item.get("previous_filename")
            files.append(
                ChangedFile(
                    path=filename,
                    status=status if isinstance(status, str) else "modified",
                    previous_path=previous if isinstance(previous, str) else None,
                )
            )

        return ComparedFiles(files=files, truncated=len(raw_files) >= COMPARE_FILE_LIMIT)

    def close(self) -> None:
        self._session.close()
        if self._github is not None:
            self._github.close()
