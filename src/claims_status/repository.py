"""Read-only claim and notes store loaded once from the JSON documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import json
import logging

from pydantic import ValidationError

from .models import Claim, NoteCollection

logger = logging.getLogger(__name__)

CLAIMS_FILENAME = "claims.json"
NOTES_FILENAME = "notes.json"


class DataLoadError(RuntimeError):
    """Raised when a source document is missing or not valid claim data."""


class ClaimStore:
    """Immutable-after-load mapping of claim ids to claims and case notes."""

    def __init__(self, claims: List[Claim], notes: Dict[str, NoteCollection]) -> None:
        self._claims: Tuple[Claim, ...] = tuple(claims)
        self._notes: Dict[str, NoteCollection] = dict(notes)

    @classmethod
    def from_directory(cls, data_dir: Path) -> "ClaimStore":
        claims, notes = load_all(data_dir)
        return cls(claims, notes)

    @property
    def claim_count(self) -> int:
        return len(self._claims)

    @property
    def notes_count(self) -> int:
        return len(self._notes)

    def claim_ids(self) -> List[str]:
        return [claim.id for claim in self._claims]

    def claims(self) -> Tuple[Claim, ...]:
        return self._claims

    def find_claim(self, claim_id: str) -> Optional[Claim]:
        for claim in self._claims:
            if claim.id == claim_id:
                return claim
        return None

    def find_notes(self, claim_id: str) -> Optional[NoteCollection]:
        return self._notes.get(claim_id)

    def notes_text(self, claim_id: str) -> str:
        collection = self.find_notes(claim_id)
        return collection.as_text() if collection else ""


def load_all(data_dir: Path) -> Tuple[List[Claim], Dict[str, NoteCollection]]:
    """Load and validate both documents, raising ``DataLoadError`` on any defect."""

    claims_raw = _read_json(data_dir / CLAIMS_FILENAME)
    notes_raw = _read_json(data_dir / NOTES_FILENAME)

    if not isinstance(claims_raw, list):
        raise DataLoadError(f"{CLAIMS_FILENAME} must contain a JSON array of claims")
    if not isinstance(notes_raw, dict):
        raise DataLoadError(f"{NOTES_FILENAME} must contain a JSON object keyed by claim id")

    try:
        claims = [Claim.model_validate(item) for item in claims_raw]
        notes = {
            claim_id: _coerce_notes(claim_id, value)
            for claim_id, value in notes_raw.items()
        }
    except ValidationError as exc:
        raise DataLoadError(f"Invalid claim data in {data_dir}: {exc}") from exc

    logger.info("Loaded %d claims and %d notes from %s", len(claims), len(notes), data_dir)
    return claims, notes


def _coerce_notes(claim_id: str, value: Any) -> NoteCollection:
    if isinstance(value, dict):
        payload = {**value, "claimId": claim_id}
    else:
        payload = {"claimId": claim_id, "notes": value}
    return NoteCollection.model_validate(payload)


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise DataLoadError(f"Data document not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DataLoadError(f"Data document is not valid JSON: {path} ({exc})") from exc
