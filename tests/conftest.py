"""Test configuration and fixtures."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from docs_lint_workflow.pipeline.typos import LintReport, SpellingViolation
from docs_lint_workflow.pipeline.workflow.events import ChangedFile, TriggerEvent

# Ambient CI variables that would otherwise leak into settings and event loading
# when the suite itself runs inside GitHub Actions.
_AMBIENT_ENV = (
    "LOG_LEVEL",
    "DOCS_LINT_GITHUB_TOKEN",
    "GITHUB_BASE_URL",
    "GITHUB_REPOSITORY",
    "GITHUB_EVENT_NAME",
    "GITHUB_EVENT_PATH",
    "GITHUB_REF_NAME",
    "GITHUB_OUTPUT",
    "DOCS_LINT_PUSH_BRANCHES",
    "DOCS_LINT_PR_TYPES",
    "DOCS_LINT_DOC_PREFIXES",
    "DOCS_LINT_ROOT_PATTERNS",
    "DOCS_LINT_FILES",
    "DOCS_LINT_TYPOS_BIN",
    "DOCS_LINT_TYPOS_TIMEOUT_SECONDS",
    "DOCS_LINT_STATE_PATH",
    "DOCS_LINT_WORKSPACE",
    "DOCS_LINT_WEBHOOK_SECRET",
    "DOCS_LINT_RUNS_PATH",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test from an empty directory with no CI variables set."""
    for name in _AMBIENT_ENV:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


@dataclass
class StaticSource:
    """Changed-path source returning a fixed list."""

    paths: list[str]
    calls: int = 0

    def changed_files(self, event: TriggerEvent) -> list[ChangedFile]:
        self.calls += 1
        return [ChangedFile(path=p) for p in self.paths]


@dataclass
class FakeChecker:
    """Spell checker that flags configured words in the files it is given."""

    misspellings: dict[str, str] = field(default_factory=dict)
    calls: list[tuple[Path, list[str]]] = field(default_factory=list)

    def check(self, *, root: Path, targets: list[str]) -> LintReport:
        self.calls.append((root, list(targets)))
        violations: list[SpellingViolation] = []
        for target in targets:
            rel = target.removeprefix("./")
            if "*" in rel:
                files = sorted(root.glob(rel))
            elif (root / rel).is_dir():
                files = sorted((root / rel).rglob("*"))
            else:
                files = [root / rel]
            for path in files:
                if not path.is_file():
                    continue
                for line_no, line in enumerate(
                    path.read_text(encoding="utf-8").splitlines(), start=1
                ):
                    for typo, fix in self.misspellings.items():
                        col = line.find(typo)
                        if col >= 0:
                            violations.append(
                                SpellingViolation(
                                    path=path.relative_to(root).as_posix(),
                                    line=line_no,
                                    column=col,
                                    typo=typo,
                                    corrections=(fix,),
                                )
                            )
        return LintReport(
            passed=not violations,
            targets=tuple(targets),
            violations=tuple(violations),
        )


@pytest.fixture
def static_source() -> type[StaticSource]:
    return StaticSource


@pytest.fixture
def fake_checker() -> FakeChecker:
    return FakeChecker(misspellings={"teh": "the", "recieve": "receive"})


@pytest.fixture
def docs_repo(tmp_path: Path) -> Path:
    """A checkout with a doc/ directory and root-level Markdown."""
    root = tmp_path / "repo"
    (root / "doc").mkdir(parents=True)
    (root / "src").mkdir()
    (root / "doc" / "intro.md").write_text("# Intro\n\nWelcome to the docs.\n", encoding="utf-8")
    (root / "doc" / "guide.md").write_text("# Guide\n\nRead this first.\n", encoding="utf-8")
    (root / "README.md").write_text("# Project\n\nHello.\n", encoding="utf-8")
    (root / "src" / "app.go").write_text("package main\n", encoding="utf-8")
    return root


GIT_AVAILABLE = shutil.which("git") is not None


@dataclass
class GitRepo:
    path: Path

    def run(self, *args: str) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.path), *args],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip()

    def commit_all(self, message: str) -> str:
        self.run("add", "-A")
        self.run("commit", "-q", "-m", message)
        return self.run("rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    """A fresh git repository under tmp_path."""
    if not GIT_AVAILABLE:
        pytest.skip("git is not installed")
    repo = GitRepo(path=tmp_path / "gitrepo")
    repo.path.mkdir()
    repo.run("init", "-q")
    repo.run("config", "user.email", "docs@example.com")
    repo.run("config", "user.name", "Docs Bot")
    repo.run("config", "commit.gpgsign", "false")
    return repo
