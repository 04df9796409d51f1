from __future__ import annotations

import importlib.metadata
import time
from typing import Any

from fastapi import APIRouter, Depends

from src.api.dependencies import get_controller
from src.runtime.controller import LifecycleController


router = APIRouter()


def _pkg_version(name: str) -> str | None:
    try:
        return str(importlib.metadata.version(name))
    except importlib.metadata.PackageNotFoundError:
        return None
    except Exception:
        return None


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/version")
def version() -> dict[str, Any]:
    return {
        "service": "request-playground",
        "api": "v1",
        "deps": {
            "fastapi": _pkg_version("fastapi"),
            "uvicorn": _pkg_version("uvicorn"),
            "pydantic": _pkg_version("pydantic"),
        },
        "ts": time.time(),
    }


@router.get("/system/controller")
def system_controller(controller: LifecycleController = Depends(get_controller)) -> dict[str, Any]:
    # Expose minimal runtime observability for UI debugging.
    cfg = controller.config
    return {
        "ts": time.time(),
        "state": controller.snapshot().to_dict(),
        "config": {
            "timeouts": {"default_s": cfg.timeouts.default_s, "min_s": cfg.timeouts.min_s, "max_s": cfg.timeouts.max_s},
            "latency_ms": cfg.transport.latency_ms,
            "tick_interval_s": cfg.countdown.tick_interval_s,
        },
        "events_buffered": len(controller.events()),
    }
