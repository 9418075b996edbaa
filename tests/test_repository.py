import pytest

from claims_status.repository import ClaimStore, DataLoadError, load_all

from .conftest import CLAIMS, NOTES, write_dataset


def test_load_all_reads_claims_and_notes(data_dir):
    claims, notes = load_all(data_dir)
    assert [claim.id for claim in claims] == ["CLM001", "CLM002", "CLM005"]
    assert set(notes) == {"CLM001", "CLM002"}


def test_find_claim_and_missing_claim(data_dir):
    store = ClaimStore.from_directory(data_dir)
    claim = store.find_claim("CLM001")
    assert claim.type == "theft"
    assert claim.estimated_amount == 1200
    assert store.find_claim("CLM999") is None


def test_claim_record_keeps_unknown_keys(data_dir):
    record = ClaimStore.from_directory(data_dir).find_claim("CLM001").to_record()
    assert record["policyNumber"] == "POL-AUTO-48213"
    assert record["claimNumber"] == "CLM001"
    assert record["estimatedAmount"] == 1200


def test_notes_text_joins_list_with_single_spaces(data_dir):
    store = ClaimStore.from_directory(data_dir)
    assert store.notes_text("CLM001") == "Customer reported theft. Police report received."
    assert store.notes_text("CLM002") == "Plumber invoice confirms failed supply line."
    assert store.find_notes("CLM005") is None
    assert store.notes_text("CLM005") == ""


def test_bare_note_values_are_accepted(tmp_path):
    directory = write_dataset(
        tmp_path,
        notes={"CLM001": ["first entry", "second entry"], "CLM002": "single entry", "CLM005": {}},
    )
    store = ClaimStore.from_directory(directory)
    assert store.notes_text("CLM001") == "first entry second entry"
    assert store.notes_text("CLM002") == "single entry"
    assert store.find_notes("CLM005") is not None
    assert store.notes_text("CLM005") == ""


def test_counts(data_dir):
    store = ClaimStore.from_directory(data_dir)
    assert store.claim_count == 3
    assert store.notes_count == 2


def test_missing_document_is_fatal(tmp_path):
    (tmp_path / "claims.json").write_text("[]", encoding="utf-8")
    with pytest.raises(DataLoadError, match="not found"):
        ClaimStore.from_directory(tmp_path)


def test_malformed_json_is_fatal(tmp_path):
    write_dataset(tmp_path)
    (tmp_path / "notes.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(DataLoadError, match="not valid JSON"):
        ClaimStore.from_directory(tmp_path)


def test_undecodable_document_is_fatal(tmp_path):
    write_dataset(tmp_path)
    (tmp_path / "claims.json").write_bytes(b"[\xff\xfe]")
    with pytest.raises(DataLoadError, match="not valid JSON"):
        ClaimStore.from_directory(tmp_path)


@pytest.mark.parametrize(
    "claims, notes",
    [
        ({"CLM001": CLAIMS[0]}, NOTES),
        (CLAIMS, [NOTES]),
        ([{"id": "CLM001", "type": "theft"}], NOTES),
        (CLAIMS, {"CLM001": {"notes": {"nested": True}}}),
    ],
)
def test_invalid_structure_is_fatal(tmp_path, claims, notes):
    write_dataset(tmp_path, claims=claims, notes=notes)
    with pytest.raises(DataLoadError):
        ClaimStore.from_directory(tmp_path)
