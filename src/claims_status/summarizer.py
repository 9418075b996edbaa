"""Natural-language claim summaries backed by Azure OpenAI with tiered fallbacks."""

from __future__ import annotations

import logging
import time
from textwrap import dedent
from typing import Any, Dict, Optional

from .azure_llm import (
    AsyncAzureOpenAI,
    build_completion_kwargs,
    extract_response_text,
    extract_total_tokens,
)
from .models import Claim, SummaryBundle
from .observability import SummaryMetrics, SummaryTracer, get_metrics, get_tracer
from .parsers import SummaryParseError, parse_summary_json, sentence_fallback

logger = logging.getLogger(__name__)

MAX_NOTES_CHARS = 4000
DEFAULT_DEPLOYMENT = "gpt-35-turbo"
DEFAULT_MAX_OUTPUT_TOKENS = 500
DEFAULT_TEMPERATURE = 0.3

SYSTEM_PROMPT = (
    "You are an experienced insurance claims analyst. Generate natural language "
    "summaries as simple strings, not structured data. Return ONLY valid JSON with "
    "exactly 4 string fields."
)

USER_PROMPT_TEMPLATE = dedent(
    """\
    Generate claim summaries as JSON with these exact keys: summary, customerSummary, adjusterSummary, nextStep.

    Each value must be a single narrative string (not objects or arrays).

    Claim Details:
    - ID: {claim_id}
    - Claim Number: {claim_number}
    - Type: {claim_type}
    - Status: {status}
    - Amount: ${amount}
    - Description: {description}

    Notes: {notes}

    Return ONLY the JSON object, for example:
    {{
      "summary": "Brief professional overview of the claim in 1-2 sentences",
      "customerSummary": "Customer-friendly explanation of current status and what happens next",
      "adjusterSummary": "Technical assessment for adjusters with key details and next actions",
      "nextStep": "Specific next action to take on this claim"
    }}"""
)

# Last-resort values when neither the field nor the parsed summary is usable.
FIELD_DEFAULTS: Dict[str, str] = {
    "summary": "Summary unavailable",
    "customerSummary": "Customer summary unavailable",
    "adjusterSummary": "Adjuster summary unavailable",
    "nextStep": "No next step identified",
}

MOCK_NEXT_STEP = "Review documentation and proceed to next workflow step"

HARD_FAILURE_BUNDLE = SummaryBundle(
    summary="Error generating AI summary. Please try again later.",
    customerSummary="We are still processing your claim. Please check back later.",
    adjusterSummary="AI generation failed; manual review required.",
    nextStep="Retry AI generation later",
    usageTokens=0,
)


def truncate_notes(notes_text: Optional[str]) -> str:
    return (notes_text or "")[:MAX_NOTES_CHARS]


def format_amount(amount: Any) -> str:
    if isinstance(amount, float) and amount.is_integer():
        return str(int(amount))
    if isinstance(amount, float):
        return f"{amount:.2f}"
    return str(amount)


def build_user_prompt(claim: Claim, safe_notes: str) -> str:
    return USER_PROMPT_TEMPLATE.format(
        claim_id=claim.id,
        claim_number=claim.claim_number,
        claim_type=claim.type,
        status=claim.status,
        amount=format_amount(claim.estimated_amount),
        description=claim.description,
        notes=safe_notes or "(no notes available)",
    )


def mock_bundle(claim: Claim, safe_notes: str) -> SummaryBundle:
    """Deterministic bundle built from the claim's own fields."""

    amount = format_amount(claim.estimated_amount)
    return SummaryBundle(
        summary=f"Claim {claim.claim_number} ({claim.type}) is {claim.status} with estimate ${amount}.",
        customerSummary=(
            f"Your claim {claim.claim_number} is currently {claim.status}. "
            "We are reviewing the provided information."
        ),
        adjusterSummary=(
            f"Claim {claim.id}: number={claim.claim_number}; type={claim.type}; "
            f"status={claim.status}; est=${amount}; notesChars={len(safe_notes)}."
        ),
        nextStep=MOCK_NEXT_STEP,
        usageTokens=0,
    )


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def bundle_from_fields(fields: Dict[str, Any], usage_tokens: int) -> SummaryBundle:
    """Fill empty fields from the parsed summary, then from fixed defaults."""

    summary = _text(fields.get("summary"))

    def pick(field: str) -> str:
        return _text(fields.get(field)) or summary or FIELD_DEFAULTS[field]

    return SummaryBundle(
        summary=summary or FIELD_DEFAULTS["summary"],
        customerSummary=pick("customerSummary"),
        adjusterSummary=pick("adjusterSummary"),
        nextStep=pick("nextStep"),
        usageTokens=usage_tokens,
    )


class SummaryGenerator:
    """
    Produce a four-field summary bundle for a claim.

    The completion client is injected at construction; ``None`` selects the
    deterministic mock mode. ``generate_summary`` never raises: every failure
    resolves to a degraded but complete bundle.
    """

    def __init__(
        self,
        client: Optional[AsyncAzureOpenAI] = None,
        *,
        deployment: str = DEFAULT_DEPLOYMENT,
        max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS,
        temperature: Optional[float] = DEFAULT_TEMPERATURE,
        tracer: Optional[SummaryTracer] = None,
        metrics: Optional[SummaryMetrics] = None,
    ) -> None:
        self._client = client
        self.deployment = deployment
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self._tracer = tracer or get_tracer()
        self._metrics = metrics or get_metrics()

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def generate_summary(self, claim: Claim, notes_text: str = "") -> SummaryBundle:
        safe_notes = truncate_notes(notes_text)
        started = time.perf_counter()
        mode = "remote" if self.connected else "mock"

        with self._tracer.create_summary_span(claim.id, mode) as span:
            if not self.connected:
                bundle, outcome = mock_bundle(claim, safe_notes), "mock"
            else:
                bundle, outcome = await self._generate_remote(claim, safe_notes)
            self._tracer.set_outcome(span, outcome)

        self._metrics.record(outcome, time.perf_counter() - started, bundle.usage_tokens)
        return bundle

    async def _generate_remote(self, claim: Claim, safe_notes: str) -> tuple[SummaryBundle, str]:
        try:
            kwargs = build_completion_kwargs(
                deployment=self.deployment,
                system=SYSTEM_PROMPT,
                prompt=build_user_prompt(claim, safe_notes),
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
            )
            response = await self._client.chat.completions.create(**kwargs)
            raw = extract_response_text(response)
            usage_tokens = extract_total_tokens(response)
        except Exception as exc:
            logger.error(
                "AI service error - claim_id=%s error_type=%s message=%s",
                claim.id,
                type(exc).__name__,
                exc,
            )
            return HARD_FAILURE_BUNDLE, "error"

        try:
            fields = parse_summary_json(raw)
            outcome = "parsed"
        except SummaryParseError as exc:
            logger.warning(
                "AI JSON parse failed for claim_id=%s: %s. Raw response: %s",
                claim.id,
                exc,
                raw[:200],
            )
            fields = sentence_fallback(raw)
            outcome = "sentence_fallback"

        return bundle_from_fields(fields, usage_tokens), outcome
