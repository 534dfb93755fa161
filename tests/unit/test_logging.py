"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from docs_lint_workflow.pipeline.logging import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler.formatter, JsonFormatter):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
def test_records_are_json_on_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("info")

    logging.getLogger("docs_lint_workflow.test").info(
        "Spell check finished", extra={"target": Path("doc/guide.md"), "violation_count": 2}
    )

    captured = capsys.readouterr()
    assert captured.out == ""
    record = json.loads(captured.err.strip().splitlines()[-1])
    assert record["level"] == "INFO"
    assert record["logger"] == "docs_lint_workflow.test"
    assert record["message"] == "Spell check finished"
    assert record["extra"] == {"target": "doc/guide.md", "violation_count": 2}


@pytest.mark.usefixtures("restore_root_logger")
def test_exceptions_are_included(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO")

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logging.getLogger("docs_lint_workflow.test").exception("Command failed")

    record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert "RuntimeError: boom" in record["exception"]
    assert "extra" not in record


@pytest.mark.usefixtures("restore_root_logger")
def test_reconfiguring_does_not_stack_handlers_and_quiets_http_logs() -> None:
    configure_logging("DEBUG")
    configure_logging("DEBUG")

    assert len(logging.getLogger().handlers) == 1
    assert logging.getLogger("urllib3").level == logging.WARNING
    assert logging.getLogger("github").level == logging.INFO
