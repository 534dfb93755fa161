"""Background runner for webhook-triggered pipeline runs."""

from __future__ import annotations

import logging
import threading
import uuid

from docs_lint_workflow.pipeline.checkout import CheckoutError, checked_out
from docs_lint_workflow.pipeline.factory import PipelineFactory
from docs_lint_workflow.pipeline.github.client import GitHubClient
from docs_lint_workflow.pipeline.workflow.events import TriggerEvent
from docs_lint_workflow.pipeline.workflow.runner import DocsLintPipeline
from docs_lint_workflow.server.config import ServerSettings
from docs_lint_workflow.server.run_store import RunRecord, RunStore

logger = logging.getLogger(__name__)


def start_pipeline_run(
    *,
    event: TriggerEvent,
    settings: ServerSettings,
    run_store: RunStore,
) -> RunRecord:
    run_id = uuid.uuid4().hex
    record = run_store.create(run_id=run_id, event=event.describe())

    thread = threading.Thread(
        target=_run_job,
        name=f"docs-lint-{run_id}",
        daemon=True,
        kwargs={
            "run_id": run_id,
            "event": event,
            "settings": settings,
            "run_store": run_store,
        },
    )
    thread.start()
    return record


def execute_run(
    *,
    run_id: str,
    event: TriggerEvent,
    pipeline: DocsLintPipeline,
    run_store: RunStore,
) -> RunRecord:
    """Run the pipeline synchronously and record the outcome."""

    run_store.update(run_id, status="running")
    result = pipeline.run(event)

    snapshot = result.snapshot
    if not result.triggered:
        return run_store.update(run_id, status="skipped", error="Event does not trigger")

    return run_store.update(
        run_id,
        status=snapshot.state.value,
        is_doc=snapshot.is_doc,
        doc_paths=list(snapshot.doc_paths),
        violation_count=snapshot.violation_count,
        error=snapshot.error,
    )


def _run_job(
    *,
    run_id: str,
    event: TriggerEvent,
    settings: ServerSettings,
    run_store: RunStore,
) -> None:
    factory = PipelineFactory(settings)
    github: GitHubClient | None = None
    try:
        if settings.github_token.strip() and (event.repository or settings.repository):
            github = factory.github_client(repository=event.repository)
        source = factory.source(
            "auto", root=settings.workspace_path, event_kind=event.kind, github=github
        )
        # Lint the delivered commit, not whatever the shared workspace has checked out.
        with checked_out(settings.workspace_path, event.head_sha) as root:
            pipeline = factory.pipeline(source, root=root)
            record = execute_run(
                run_id=run_id, event=event, pipeline=pipeline, run_store=run_store
            )
        logger.info(
            "Pipeline run finished",
            extra={"run_id": run_id, "status": record.status, **event.describe()},
        )
    except CheckoutError as e:
        logger.error("Could not check out event head", extra={"run_id": run_id, "error": str(e)})
        run_store.update(run_id, status="failed", error=str(e))
    except Exception as e:
        logger.exception("Pipeline run failed", extra={"run_id": run_id})
        run_store.update(run_id, status="failed", error=str(e))
    finally:
        if github is not None:
            github.close()
