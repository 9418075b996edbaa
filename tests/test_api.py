import logging
import uuid
from contextlib import ExitStack

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from claims_status.api.main import create_app
from claims_status.observability import RequestContextFilter
from claims_status.summarizer import HARD_FAILURE_BUNDLE

from .conftest import FakeClient

SUMMARY_KEYS = {"claimId", "summary", "customerSummary", "adjusterSummary", "nextStep", "generatedAt"}


@pytest.fixture
def make_client(make_runtime):
    with ExitStack() as stack:

        def _make(ai_client=None) -> TestClient:
            app = create_app(make_runtime(client=ai_client))
            return stack.enter_context(TestClient(app))

        yield _make


@pytest.fixture
def api(make_client):
    return make_client()


def test_health_reports_mock_mode(api):
    response = api.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "claim-status-api"
    assert body["version"] == "1.0.0"
    assert body["timestamp"]
    assert body["dependencies"] == {"mockData": {"claims": 3, "notes": 2}, "azureOpenAI": "mock_mode"}


def test_health_reports_connected_before_any_summary(make_client):
    client = make_client(FakeClient(content="{}"))
    assert client.get("/health").json()["dependencies"]["azureOpenAI"] == "connected"


def test_every_response_carries_request_id_and_security_headers(api):
    for response in (api.get("/health"), api.get("/claims/CLM001"), api.get("/claims/bad"), api.get("/claims/CLM999")):
        uuid.UUID(response.headers["X-Request-ID"])
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


def test_request_ids_are_unique(api):
    first = api.get("/health").headers["X-Request-ID"]
    second = api.get("/health").headers["X-Request-ID"]
    assert first != second


def test_log_records_carry_the_response_request_id(api):
    records = []
    handler = logging.Handler()
    handler.emit = records.append
    handler.addFilter(RequestContextFilter())
    package_logger = logging.getLogger("claims_status")
    package_logger.addHandler(handler)
    previous_level = package_logger.level
    package_logger.setLevel(logging.INFO)
    try:
        response = api.post("/claims/CLM001/summarize")
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(previous_level)

    request_id = response.headers["X-Request-ID"]
    messages = {
        prefix: [record for record in records if record.getMessage().startswith(prefix)]
        for prefix in ("AI summary generated", "Request completed")
    }
    for prefix, matched in messages.items():
        assert matched, prefix
        assert all(record.request_id == request_id for record in matched)


def test_get_claim_returns_full_record(api):
    response = api.get("/claims/CLM001")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "CLM001"
    assert body["policyNumber"] == "POL-AUTO-48213"
    assert body["estimatedAmount"] == 1200


def test_get_claim_is_idempotent(api):
    assert api.get("/claims/CLM002").content == api.get("/claims/CLM002").content


@pytest.mark.parametrize("claim_id", ["CLM1", "CLM0001", "clm001", "ABC123", "CLM00A", "CLM001x"])
@pytest.mark.parametrize("method, suffix", [("get", ""), ("post", "/summarize")])
def test_malformed_ids_are_rejected_before_lookup(make_client, claim_id, method, suffix):
    client = make_client()
    store = client.app.state.runtime.store
    calls = []
    original = store.find_claim
    store.find_claim = lambda value: calls.append(value) or original(value)

    response = getattr(client, method)(f"/claims/{claim_id}{suffix}")

    assert response.status_code == 400
    body = response.json()
    assert "CLM###" in body["error"]
    assert body["claimId"] == claim_id
    assert body["requestId"] == response.headers["X-Request-ID"]
    assert calls == []


@pytest.mark.parametrize("method, suffix", [("get", ""), ("post", "/summarize")])
def test_unknown_claims_return_404(api, method, suffix):
    response = getattr(api, method)(f"/claims/CLM999{suffix}")
    assert response.status_code == 404
    assert response.json() == {"error": "Claim not found", "claimId": "CLM999"}


def test_summarize_without_notes_returns_404(api):
    response = api.post("/claims/CLM005/summarize")
    assert response.status_code == 404
    assert response.json() == {"error": "No notes found for claim", "claimId": "CLM005"}


def test_summarize_in_mock_mode(api):
    response = api.post("/claims/CLM001/summarize")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == SUMMARY_KEYS
    assert body["claimId"] == "CLM001"
    for expected in ("CLM001", "theft", "in-review", "1200"):
        assert expected in body["adjusterSummary"]
    notes_chars = len("Customer reported theft. Police report received.")
    assert f"notesChars={notes_chars}" in body["adjusterSummary"]


def test_summarize_with_prose_response(make_client):
    raw = (
        "Claim looks routine. Customer should expect payout soon. "
        "Adjuster: verify VIN. Next: close within 5 days."
    )
    client = make_client(FakeClient(content=raw, total_tokens=80))

    body = client.post("/claims/CLM001/summarize").json()

    assert body["summary"] == "Claim looks routine."
    assert body["customerSummary"] == "Customer should expect payout soon."
    assert body["adjusterSummary"] == "Adjuster: verify VIN."
    assert body["nextStep"] == "Next: close within 5 days."


def test_summarize_remote_failure_still_returns_200(make_client, caplog):
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://example.invalid"))
    client = make_client(FakeClient(error=error))

    with caplog.at_level(logging.ERROR):
        response = client.post("/claims/CLM002/summarize")

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == HARD_FAILURE_BUNDLE.summary
    assert body["customerSummary"] == HARD_FAILURE_BUNDLE.customer_summary
    assert body["adjusterSummary"] == HARD_FAILURE_BUNDLE.adjuster_summary
    assert body["nextStep"] == HARD_FAILURE_BUNDLE.next_step
    assert "APIConnectionError" in caplog.text


def test_summarize_unexpected_error_returns_500(make_client):
    client = make_client()

    async def explode(claim, notes_text=""):
        raise RuntimeError("internal detail")

    client.app.state.runtime.generator.generate_summary = explode
    response = client.post("/claims/CLM001/summarize")

    assert response.status_code == 500
    body = response.json()
    assert body == {"error": "Failed to generate summary", "requestId": response.headers["X-Request-ID"]}
    assert "internal detail" not in response.text


def test_unhandled_error_returns_500_with_request_id(make_client):
    client = make_client()

    def explode(claim_id):
        raise RuntimeError("store exploded")

    client.app.state.runtime.store.find_claim = explode
    response = client.get("/claims/CLM001")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "requestId": response.headers["X-Request-ID"]}


def test_routes_return_503_without_runtime(make_settings):
    app = create_app(settings=make_settings())
    client = TestClient(app)
    assert client.get("/health").status_code == 503
