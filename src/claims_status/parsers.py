"""Utilities for turning free-form completion text into summary fields."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

SUMMARY_FIELDS = ("summary", "customerSummary", "adjusterSummary", "nextStep")

# Used when the degraded sentence split runs out of sentences.
SENTENCE_FALLBACKS: Dict[str, str] = {
    "summary": "AI summary generation failed",
    "customerSummary": "Please check back for updates on your claim",
    "adjusterSummary": "Manual review required for this claim",
    "nextStep": "Continue standard claim processing workflow",
}

MIN_SENTENCE_CHARS = 10
_SENTENCE_END = re.compile(r"[.!?]+")


class SummaryParseError(ValueError):
    """Completion text did not hold four flat summary strings."""


def extract_json_block(text: str) -> Optional[str]:
    """Return the first balanced top-level ``{...}`` region in ``text``.

    Braces inside JSON string literals are ignored, so prose or code fences
    around the object do not matter. Returns ``None`` when no closed region
    exists.
    """

    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def parse_summary_json(raw: str) -> Dict[str, Any]:
    """Parse the structured answer, rejecting nested values in summary fields."""

    candidate = extract_json_block(raw) or raw
    try:
        parsed = json.loads(candidate)
    except (ValueError, RecursionError, TypeError) as exc:
        raise SummaryParseError(f"Invalid JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise SummaryParseError(f"Expected a JSON object, got {type(parsed).__name__}")

    for field in SUMMARY_FIELDS:
        if isinstance(parsed.get(field), (dict, list)):
            raise SummaryParseError("AI returned structured data instead of strings")

    return parsed


def split_sentences(raw: str) -> List[str]:
    fragments = _SENTENCE_END.split(raw or "")
    return [fragment.strip() for fragment in fragments if len(fragment.strip()) > MIN_SENTENCE_CHARS]


def sentence_fallback(raw: str) -> Dict[str, str]:
    """Assign the first four usable sentences of ``raw`` to the summary fields."""

    sentences = split_sentences(raw)
    fields: Dict[str, str] = {}
    for index, field in enumerate(SUMMARY_FIELDS):
        if index < len(sentences):
            fields[field] = f"{sentences[index]}."
        else:
            fields[field] = SENTENCE_FALLBACKS[field]
    return fields
