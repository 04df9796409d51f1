from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from src.api.errors import APIError, api_error_handler, unhandled_error_handler, validation_error_handler
from src.config.load_config import load_app_config
from src.runtime.controller import LifecycleController

from .routers.health import router as health_router
from .routers.requests import router as requests_router


logger = logging.getLogger(__name__)


def _cors_origins_from_env() -> list[str]:
    raw = os.getenv("PLAYGROUND_CORS_ORIGINS", "").strip()
    if not raw:
        # Safe local defaults: allow typical dev ports.
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):  # noqa: ANN202
        # Single controller per process (single logical caller assumption).
        controller = LifecycleController(load_app_config())
        app.state.controller = controller
        logger.info("request playground controller started")
        try:
            yield
        finally:
            await controller.aclose()
            app.state.controller = None

    app = FastAPI(title="Request Playground API", version="0.1.0", lifespan=lifespan)

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    origins = _cors_origins_from_env()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, prefix="/api/v1", tags=["system"])
    app.include_router(requests_router, prefix="/api/v1", tags=["requests"])

    return app


app = create_app()
