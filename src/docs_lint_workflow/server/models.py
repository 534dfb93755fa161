"""Pydantic models for the webhook server."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

RunStatus = Literal["queued", "running", "skipped", "passed", "failed"]


class ApiRun(BaseModel):
    run_id: str
    status: RunStatus
    event: dict[str, object] = Field(default_factory=dict)

    created_at: datetime
    updated_at: datetime

    is_doc: bool | None = None
    doc_paths: list[str] = Field(default_factory=list)
    violation_count: int = 0
    error: str | None = None


class WebhookResponse(BaseModel):
    status: Literal["accepted", "ignored", "pong"]
    reason: str | None = None
    run: ApiRun | None = None
