"""FastAPI webhook server for docs-lint-workflow.

Receives GitHub `push` and `pull_request` deliveries and runs the docs
pipeline in the background against a local checkout.

Design intent:
- Keep pipeline logic in `docs_lint_workflow.pipeline.*`
- Keep server-specific concerns (routing, signatures, run tracking) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from docs_lint_workflow.server.app import create_app
