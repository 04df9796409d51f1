from __future__ import annotations

from fastapi import Request

from src.api.errors import APIError
from src.runtime.controller import LifecycleController


def get_controller(request: Request) -> LifecycleController:
    """FastAPI dependency: the process-wide controller created in the app lifespan.

    There is exactly one logical caller and one outstanding request, so the
    controller is shared by every HTTP request for the lifetime of the process.
    """
    controller = getattr(request.app.state, "controller", None)
    if not isinstance(controller, LifecycleController):
        raise APIError(status_code=503, code="unavailable", message="Controller is not running.")
    return controller
