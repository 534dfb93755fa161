"""Spell checking through the `typos` command line tool.

The checker is a black box: it is handed a list of targets relative to the
checkout root and reports violations as JSON lines (`--format json`).

Exit statuses:
- 0: no typos
- 2: typos found
- anything else: the checker itself failed
"""

from __future__ import annotations

import json
import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Protocol

logger = logging.getLogger(__name__)

TYPOS_FOUND_EXIT_CODE = 2

_GLOB_CHARS = set("*?[")


class CheckerUnavailable(RuntimeError):
    """The spell checker could not be run to completion."""


@dataclass(frozen=True, slots=True)
class SpellingViolation:
    path: str
    line: int
    column: int
    typo: str
    corrections: tuple[str, ...] = ()

    def format(self) -> str:
        location = f"{self.path}:{self.line}:{self.column}"
        if not self.corrections:
            return f"{location}: `{self.typo}` is disallowed"
        suggestions = ", ".join(f"`{c}`" for c in self.corrections)
        return f"{location}: `{self.typo}` should be {suggestions}"


@dataclass(frozen=True, slots=True)
class LintReport:
    passed: bool
    targets: tuple[str, ...] = ()
    violations: tuple[SpellingViolation, ...] = field(default_factory=tuple)


class LintFailure(RuntimeError):
    """The spell checker reported one or more violations."""

    def __init__(self, report: LintReport) -> None:
        count = len(report.violations)
        super().__init__(f"Spell check failed with {count} violation(s)")
        self.report = report


class SpellChecker(Protocol):
    def check(self, *, root: Path, targets: Sequence[str]) -> LintReport: ...


def is_absolute_target(target: str) -> bool:
    """True for `/abs` and Windows `C:\\abs` style targets."""
    stripped = target.strip()
    return PurePosixPath(stripped).is_absolute() or PureWindowsPath(stripped).is_absolute()


def expand_targets(root: Path, targets: Sequence[str]) -> list[str]:
    """Resolve lint targets against a checkout root.

    Glob targets are expanded without recursion (`./*.md` only sees the root).
    Like a shell glob, they never match names starting with `.`.
    Targets that do not exist are dropped. Results are POSIX paths relative to
    `root`, de-duplicated, in the order given.

    Raises:
        ValueError: for an absolute target.
    """

    resolved: list[str] = []
    for target in targets:
        if is_absolute_target(target):
            raise ValueError(f"Lint target must be relative to the checkout: {target}")
        rel = target.strip()
        while rel.startswith("./"):
            rel = rel[2:]
        if not rel:
            continue
        if any(ch in _GLOB_CHARS for ch in rel):
            matches = sorted(
                p for p in root.glob(rel) if p.is_file() and not p.name.startswith(".")
            )
            resolved.extend(p.relative_to(root).as_posix() for p in matches)
        elif (root / rel).exists():
            resolved.append(rel.rstrip("/"))
        else:
            logger.debug("Skipping missing lint target", extra={"target": target})
    return list(dict.fromkeys(resolved))


def parse_typos_json(output: str) -> list[SpellingViolation]:
    """Parse `typos --format json` output, one JSON object per line."""

    violations: list[SpellingViolation] = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            item = json.loads(line)
        except json.JSONDecodeError:
            logger.warning("Ignoring non-JSON typos output", extra={"line": line})
            continue
        if not isinstance(item, dict) or item.get("type") != "typo":
            continue
        corrections = item.get("corrections")
        violations.append(
            SpellingViolation(
                path=str(item.get("path", "")),
                line=int(item.get("line_num", 0) or 0),
                column=int(item.get("byte_offset", 0) or 0),
                typo=str(item.get("typo", "")),
                corrections=tuple(str(c) for c in corrections)
                if isinstance(corrections, list)
                else (),
            )
        )
    return violations


@dataclass(frozen=True, slots=True)
class TyposChecker:
    binary: str = "typos"
    timeout_seconds: float = 300.0
    config_path: Path | None = None

    def check(self, *, root: Path, targets: Sequence[str]) -> LintReport:
        expanded = expand_targets(root, targets)
        if not expanded:
            logger.info("No lint targets exist; nothing to check", extra={"targets": list(targets)})
            return LintReport(passed=True)

        cmd = [self.binary, "--format", "json"]
        if self.config_path is not None:
            cmd.extend(["--config", str(self.config_path)])
        cmd.extend(expanded)

        try:
            result = subprocess.run(
                cmd,
                cwd=root,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
                check=False,
            )
        except FileNotFoundError as e:
            raise CheckerUnavailable(f"typos executable not found: {self.binary}") from e
        except subprocess.TimeoutExpired as e:
            raise CheckerUnavailable(f"typos timed out after {self.timeout_seconds}s") from e

        violations = parse_typos_json(result.stdout)
        if result.returncode not in (0, TYPOS_FOUND_EXIT_CODE) and not violations:
            raise CheckerUnavailable(
                f"typos exited with status {result.returncode}: {result.stderr.strip()}"
            )

        passed = result.returncode == 0 and not violations
        logger.info(
            "Spell check finished",
            extra={
                "exit_status": result.returncode,
                "targets": expanded,
                "violation_count": len(violations),
            },
        )
        return LintReport(passed=passed, targets=tuple(expanded), violations=tuple(violations))
