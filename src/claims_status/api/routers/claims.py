"""Claims-facing API endpoints."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...observability import current_request_id
from ...repository import ClaimStore
from ...summarizer import SummaryGenerator
from ..dependencies import get_generator, get_store, valid_claim_id
from ..errors import ClaimNotFoundError, NotesNotFoundError, internal_error_response
from ..schemas import ErrorResponse, SummaryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/claims", tags=["claims"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed claim id"},
    404: {"model": ErrorResponse, "description": "Unknown claim or missing notes"},
}


@router.get("/{claim_id}", responses=ERROR_RESPONSES)
async def get_claim(
    claim_id: str = Depends(valid_claim_id),
    store: ClaimStore = Depends(get_store),
) -> JSONResponse:
    """Return the full claim record."""

    claim = store.find_claim(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)

    logger.info("Claim accessed - claim_id=%s claim_type=%s", claim_id, claim.type)
    return JSONResponse(content=claim.to_record())


@router.post(
    "/{claim_id}/summarize",
    response_model=SummaryResponse,
    responses={**ERROR_RESPONSES, 500: {"model": ErrorResponse}},
)
async def summarize_claim(
    request: Request,
    claim_id: str = Depends(valid_claim_id),
    store: ClaimStore = Depends(get_store),
    generator: SummaryGenerator = Depends(get_generator),
):
    """Summarize a claim and its case notes for customers and adjusters."""

    claim = store.find_claim(claim_id)
    if claim is None:
        raise ClaimNotFoundError(claim_id)

    notes = store.find_notes(claim_id)
    if notes is None:
        raise NotesNotFoundError(claim_id)

    request_id = getattr(request.state, "request_id", None) or current_request_id()
    started = time.perf_counter()
    try:
        bundle = await generator.generate_summary(claim, notes.as_text())
        response = SummaryResponse.from_bundle(claim_id, bundle, datetime.now(timezone.utc))
    except Exception as exc:
        logger.error(
            "Summary request failed - claim_id=%s error_type=%s message=%s",
            claim_id,
            type(exc).__name__,
            exc,
        )
        return internal_error_response("Failed to generate summary", request_id)

    logger.info(
        "AI summary generated - claim_id=%s claim_type=%s processing_ms=%.0f tokens_used=%d",
        claim_id,
        claim.type,
        (time.perf_counter() - started) * 1000,
        bundle.usage_tokens,
    )
    return response
