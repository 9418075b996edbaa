"""API error types and their JSON rendering."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

from ..observability import current_request_id


class ApiError(Exception):
    """Client-facing error with a fixed status code and JSON body."""

    status_code = 500

    def __init__(self, error: str, claim_id: str | None = None) -> None:
        super().__init__(error)
        self.error = error
        self.claim_id = claim_id

    def to_body(self, request_id: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.claim_id is not None:
            body["claimId"] = self.claim_id
        return body


class InvalidClaimIdError(ApiError):
    status_code = 400

    def __init__(self, claim_id: str) -> None:
        super().__init__("Invalid claim ID format. Expected CLM### (e.g., CLM001)", claim_id)

    def to_body(self, request_id: str) -> Dict[str, Any]:
        return {**super().to_body(request_id), "requestId": request_id}


class ClaimNotFoundError(ApiError):
    status_code = 404

    def __init__(self, claim_id: str) -> None:
        super().__init__("Claim not found", claim_id)


class NotesNotFoundError(ApiError):
    status_code = 404

    def __init__(self, claim_id: str) -> None:
        super().__init__("No notes found for claim", claim_id)


def internal_error_response(error: str, request_id: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": error, "requestId": request_id})


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or current_request_id()
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(request_id))
