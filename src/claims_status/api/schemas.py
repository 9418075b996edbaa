"""Pydantic schemas shared across the FastAPI routers."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..models import SummaryBundle


class MockDataCounts(BaseModel):
    claims: int
    notes: int


class HealthDependencies(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    mock_data: MockDataCounts = Field(..., alias="mockData")
    azure_openai: Literal["connected", "mock_mode"] = Field(..., alias="azureOpenAI")


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    service: str
    version: str
    dependencies: HealthDependencies


class SummaryResponse(BaseModel):
    """API view of a summary bundle. Token usage stays server-side."""

    model_config = ConfigDict(populate_by_name=True)

    claim_id: str = Field(..., alias="claimId")
    summary: str
    customer_summary: str = Field(..., alias="customerSummary")
    adjuster_summary: str = Field(..., alias="adjusterSummary")
    next_step: str = Field(..., alias="nextStep")
    generated_at: datetime = Field(..., alias="generatedAt")

    @classmethod
    def from_bundle(cls, claim_id: str, bundle: SummaryBundle, generated_at: datetime) -> "SummaryResponse":
        return cls(
            claim_id=claim_id,
            summary=bundle.summary,
            customer_summary=bundle.customer_summary,
            adjuster_summary=bundle.adjuster_summary,
            next_step=bundle.next_step,
            generated_at=generated_at,
        )


class ErrorResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    claim_id: str | None = Field(None, alias="claimId")
    request_id: str | None = Field(None, alias="requestId")
