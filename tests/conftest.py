import asyncio
import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from claims_status.runtime import (
    AzureSettings,
    CoreRuntime,
    ObservabilitySettings,
    RuntimeSettings,
    ServiceSettings,
)

CLAIMS = [
    {
        "id": "CLM001",
        "claimNumber": "CLM001",
        "policyNumber": "POL-AUTO-48213",
        "type": "theft",
        "status": "in-review",
        "description": "Vehicle stolen from driveway overnight.",
        "estimatedAmount": 1200,
    },
    {
        "id": "CLM002",
        "claimNumber": "CLM002",
        "type": "water-damage",
        "status": "approved",
        "description": "Burst supply line under kitchen sink.",
        "estimatedAmount": 8450.5,
    },
    {
        "id": "CLM005",
        "claimNumber": "CLM005",
        "type": "windshield",
        "status": "closed",
        "description": "Cracked windshield.",
        "estimatedAmount": 420,
    },
]

NOTES = {
    "CLM001": {
        "claimId": "CLM001",
        "notes": [
            "Customer reported theft.",
            "Police report received.",
        ],
    },
    "CLM002": {"claimId": "CLM002", "notes": "Plumber invoice confirms failed supply line."},
}


class FakeCompletions:
    """Stands in for ``client.chat.completions`` and records every call."""

    def __init__(self, content="", total_tokens=None, error=None, response=None):
        self.content = content
        self.total_tokens = total_tokens
        self.error = error
        self.response = response
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        usage = SimpleNamespace(total_tokens=self.total_tokens) if self.total_tokens is not None else None
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=usage,
        )


class FakeClient:
    def __init__(self, **kwargs):
        self.completions = FakeCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def close(self):
        self.closed = True


def write_dataset(directory: Path, claims=CLAIMS, notes=NOTES) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "claims.json").write_text(json.dumps(claims), encoding="utf-8")
    (directory / "notes.json").write_text(json.dumps(notes), encoding="utf-8")
    return directory


@pytest.fixture
def data_dir(tmp_path):
    return write_dataset(tmp_path / "mocks")


@pytest.fixture
def make_settings(data_dir):
    def _make(**azure_overrides) -> RuntimeSettings:
        return RuntimeSettings(
            azure=AzureSettings(**azure_overrides),
            service=ServiceSettings(data_dir=data_dir),
            observability=ObservabilitySettings(),
        )

    return _make


@pytest.fixture
def make_runtime(make_settings):
    def _make(client=None) -> CoreRuntime:
        runtime = CoreRuntime(make_settings(), client=client)
        return asyncio.run(runtime.bootstrap())

    return _make
