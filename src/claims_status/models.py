"""Pydantic domain models shared by the store, the generator and the API."""

from __future__ import annotations

import re
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

CLAIM_ID_PATTERN = re.compile(r"CLM\d{3}", re.ASCII)


class Claim(BaseModel):
    """Insurance claim record as loaded from the claims document.

    Unknown keys are kept so the API can hand back the full record.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str
    claim_number: str = Field(..., alias="claimNumber")
    type: str
    status: str
    description: str = ""
    estimated_amount: Union[int, float] = Field(..., alias="estimatedAmount")

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class NoteCollection(BaseModel):
    """Case notes for one claim: a single string or chronological entries."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    claim_id: str = Field(..., alias="claimId")
    notes: Union[str, List[str]] = ""

    @field_validator("notes", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    def as_text(self) -> str:
        if isinstance(self.notes, list):
            return " ".join(self.notes)
        return self.notes


class SummaryBundle(BaseModel):
    """Four narrative strings produced for a claim plus remote token usage."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str
    customer_summary: str = Field(..., alias="customerSummary")
    adjuster_summary: str = Field(..., alias="adjusterSummary")
    next_step: str = Field(..., alias="nextStep")
    usage_tokens: int = Field(0, alias="usageTokens", ge=0)
