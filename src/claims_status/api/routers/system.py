"""Service health endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ...runtime import SERVICE_VERSION, CoreRuntime
from ..dependencies import get_runtime
from ..schemas import HealthDependencies, HealthResponse, MockDataCounts

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check(runtime: CoreRuntime = Depends(get_runtime)) -> HealthResponse:
    """Report data counts and whether summaries use Azure OpenAI or mock mode."""

    return HealthResponse(
        timestamp=datetime.now(timezone.utc),
        service=runtime.settings.observability.service_name,
        version=SERVICE_VERSION,
        dependencies=HealthDependencies(
            mock_data=MockDataCounts(
                claims=runtime.store.claim_count,
                notes=runtime.store.notes_count,
            ),
            azure_openai=runtime.ai_status,
        ),
    )
