"""FastAPI app factory.

Endpoints are thin wrappers over the pipeline: a webhook receiver that turns
deliveries into trigger events, and read-only views of recorded runs.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging

from fastapi import FastAPI, Header, HTTPException, Request

from docs_lint_workflow import __version__
from docs_lint_workflow.pipeline.factory import PipelineFactory
from docs_lint_workflow.pipeline.workflow.events import (
    UnsupportedEventError,
    event_from_github_payload,
)
from docs_lint_workflow.server.config import ServerSettings
from docs_lint_workflow.server.models import ApiRun, WebhookResponse
from docs_lint_workflow.server.run_store import RunRecord, RunStore
from docs_lint_workflow.server.runner import start_pipeline_run

logger = logging.getLogger(__name__)

_SIGNATURE_PREFIX = "sha256="


def _to_api_run(record: RunRecord) -> ApiRun:
    return ApiRun.model_validate(record.model_dump(mode="json"))


def verify_signature(*, secret: str, body: bytes, signature: str | None) -> bool:
    """Check a GitHub `X-Hub-Signature-256` header against the shared secret."""

    if not signature or not signature.startswith(_SIGNATURE_PREFIX):
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature[len(_SIGNATURE_PREFIX) :])


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    settings = settings or ServerSettings()

    app = FastAPI(
        title="Docs Lint Workflow",
        version=__version__,
        description="Webhook receiver that runs the docs lint pipeline.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings

    run_store = RunStore(settings.runs_path)
    trigger_filter = PipelineFactory(settings).trigger_filter()

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post("/api/v1/webhooks/github", response_model=WebhookResponse)
    async def github_webhook(
        request: Request,
        x_github_event: str = Header(default=""),
        x_hub_signature_256: str | None = Header(default=None),
    ) -> WebhookResponse:
        body = await request.body()

        if settings.webhook_secret and not verify_signature(
            secret=settings.webhook_secret, body=body, signature=x_hub_signature_256
        ):
            raise HTTPException(status_code=401, detail="Invalid webhook signature")

        if x_github_event == "ping":
            return WebhookResponse(status="pong")

        try:
            payload = json.loads(body or b"{}")
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail="Body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")

        try:
            event = event_from_github_payload(x_github_event, payload)
        except UnsupportedEventError as e:
            return WebhookResponse(status="ignored", reason=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        if not trigger_filter.matches(event):
            logger.info("Webhook delivery does not trigger", extra=event.describe())
            return WebhookResponse(status="ignored", reason="Event does not trigger the pipeline")

        record = start_pipeline_run(event=event, settings=settings, run_store=run_store)
        logger.info("Pipeline run queued", extra={"run_id": record.run_id, **event.describe()})
        return WebhookResponse(status="accepted", run=_to_api_run(record))

    @app.get("/api/v1/runs", response_model=list[ApiRun])
    def list_runs() -> list[ApiRun]:
        return [_to_api_run(r) for r in run_store.list()]

    @app.get("/api/v1/runs/{run_id}", response_model=ApiRun)
    def get_run(run_id: str) -> ApiRun:
        record = run_store.get(run_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return _to_api_run(record)

    return app
