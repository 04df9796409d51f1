from __future__ import annotations

import re
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator

from src.api.dependencies import get_controller
from src.api.errors import APIError
from src.playground.types import HttpMethod, RequestIntent
from src.runtime.controller import InvalidTimeoutError, LifecycleController


router = APIRouter()

URL_PATTERN = re.compile(r"^https?://[^/\s]+(/.*)?$")

CANCEL_NOTICE = {"title": "Request cancelled", "description": "The request was cancelled."}


class SubmitRequest(BaseModel):
    method: str = Field(default="", validate_default=True, description="GET, POST, PUT or DELETE (case-insensitive).")
    url: str = Field(default="", validate_default=True)
    body: str = Field(default="", description="Only sent for POST/PUT.")
    timeout_s: int | None = Field(default=None, description="Seconds; defaults to the configured timeout.")

    @field_validator("method")
    @classmethod
    def _check_method(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Method is required")
        try:
            return HttpMethod.parse(v).value
        except ValueError as e:
            raise ValueError(str(e)) from e

    @field_validator("url")
    @classmethod
    def _check_url(cls, v: str) -> str:
        if not v:
            raise ValueError("URL is required")
        if not URL_PATTERN.match(v):
            raise ValueError("Invalid URL format")
        return v


class DraftUpdate(BaseModel):
    method: str | None = None
    url: str | None = None
    body: str | None = None


def _timeout_error(controller: LifecycleController, timeout_s: int) -> str | None:
    t = controller.config.timeouts
    if timeout_s < t.min_s:
        return f"Timeout cannot be less than {t.min_s} seconds"
    if timeout_s > t.max_s:
        return f"Timeout cannot exceed {t.max_s} seconds"
    return None


@router.get("/state")
async def get_state(controller: LifecycleController = Depends(get_controller)) -> dict[str, Any]:
    return {"state": controller.snapshot().to_dict()}


@router.post("/requests")
async def submit_request(
    body: SubmitRequest,
    controller: LifecycleController = Depends(get_controller),
) -> dict[str, Any]:
    if body.timeout_s is not None:
        msg = _timeout_error(controller, body.timeout_s)
        if msg:
            raise APIError(
                status_code=400,
                code="invalid_argument",
                message=msg,
                details={"timeout_s": body.timeout_s},
            )
    if controller.in_progress:
        raise APIError(
            status_code=409,
            code="conflict",
            message="A request is already in progress.",
            details={"state": controller.snapshot().to_dict()},
        )

    intent = RequestIntent(method=HttpMethod.parse(body.method), target=body.url, body=body.body or None)
    try:
        controller.submit(intent, body.timeout_s)
    except InvalidTimeoutError as e:
        raise APIError(status_code=400, code="invalid_argument", message=str(e)) from e
    return {"state": controller.snapshot().to_dict()}


@router.post("/requests/cancel")
async def cancel_request(controller: LifecycleController = Depends(get_controller)) -> dict[str, Any]:
    cancelled = controller.cancel()
    return {
        "cancelled": cancelled,
        "notice": CANCEL_NOTICE if cancelled else None,
        "state": controller.snapshot().to_dict(),
    }


@router.put("/draft")
async def update_draft(
    body: DraftUpdate,
    controller: LifecycleController = Depends(get_controller),
) -> dict[str, Any]:
    # Editing the form while a request is in flight cancels it without a notice.
    cancelled = controller.notify_fields_edited()
    return {"cancelled": cancelled, "state": controller.snapshot().to_dict()}


@router.get("/events")
async def list_events(
    limit: int = Query(default=50, ge=1, le=500),
    controller: LifecycleController = Depends(get_controller),
) -> dict[str, Any]:
    return {"items": controller.events(limit=int(limit))}
