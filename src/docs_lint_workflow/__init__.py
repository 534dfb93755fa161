"""Docs lint workflow.

A documentation lint gate for CI:
- trigger filtering for push and pull request events
- change detection producing the `isDoc` job output
- a spell-check stage gated on that output
"""

__version__ = "0.1.0"

from docs_lint_workflow.pipeline.config import DocsLintSettings

__all__ = ["__version__", "DocsLintSettings"]
