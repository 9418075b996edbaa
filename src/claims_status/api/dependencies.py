"""Application-wide dependencies and lifespan hooks for the FastAPI service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request

from ..models import CLAIM_ID_PATTERN
from ..repository import ClaimStore
from ..runtime import CoreRuntime, create_runtime
from ..summarizer import SummaryGenerator
from .errors import InvalidClaimIdError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Bootstrap the runtime once per lifespan unless one was injected."""

    injected = getattr(app.state, "runtime", None)

    try:
        runtime = injected or await create_runtime(getattr(app.state, "settings", None))
    except Exception as exc:
        logger.exception("Failed to initialize claim status runtime: %s", exc)
        raise

    app.state.runtime = runtime
    logger.info("Claim status runtime ready for FastAPI app")
    try:
        yield
    finally:
        if injected is None:
            await runtime.aclose()
            app.state.runtime = None
        logger.info("Claim status runtime shut down")


def get_runtime(request: Request) -> CoreRuntime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None or runtime.store is None or runtime.generator is None:
        raise HTTPException(status_code=503, detail="Runtime not initialized")
    return runtime


def get_store(request: Request) -> ClaimStore:
    return get_runtime(request).store


def get_generator(request: Request) -> SummaryGenerator:
    return get_runtime(request).generator


def valid_claim_id(claim_id: str) -> str:
    """Reject identifiers outside ``CLM###`` before any store access."""

    if not CLAIM_ID_PATTERN.fullmatch(claim_id):
        raise InvalidClaimIdError(claim_id)
    return claim_id
