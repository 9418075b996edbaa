"""FastAPI entry point for the claim status service."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..observability import reset_request_id, set_request_id
from ..runtime import SERVICE_VERSION, CoreRuntime, RuntimeSettings, load_settings
from .dependencies import runtime_lifespan
from .errors import ApiError, api_error_handler, internal_error_response
from .routers import claims, system

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


def create_app(
    runtime: Optional[CoreRuntime] = None,
    settings: Optional[RuntimeSettings] = None,
) -> FastAPI:
    """Build the API. An injected runtime is used as-is and never bootstrapped."""

    if settings is None:
        settings = runtime.settings if runtime and runtime.settings else load_settings()

    app = FastAPI(
        title="Claim Status API",
        version=SERVICE_VERSION,
        lifespan=runtime_lifespan,
    )
    app.state.runtime = runtime
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.service.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = set_request_id(request_id)
        started = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.exception(
                    "Unhandled error - method=%s path=%s error_type=%s",
                    request.method,
                    request.url.path,
                    type(exc).__name__,
                )
                response = internal_error_response("Internal server error", request_id)

            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers.update(SECURITY_HEADERS)
            logger.info(
                "Request completed - method=%s path=%s status=%s duration_ms=%.0f",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response
        finally:
            reset_request_id(token)

    app.add_exception_handler(ApiError, api_error_handler)

    app.include_router(system.router)
    app.include_router(claims.router)

    return app


app = create_app()
