"""
Claim Status API package.

Serves insurance claim records from a static dataset and summarizes claims
through Azure OpenAI, degrading to deterministic summaries when the remote
service is unconfigured or failing.

Public API:
    - create_runtime: Bootstrap settings, claim store and summary generator
    - ClaimStore: Read-only claim and notes lookups
    - SummaryGenerator: Four-field claim summaries with tiered fallbacks
"""

from .models import Claim, NoteCollection, SummaryBundle
from .repository import ClaimStore, DataLoadError
from .runtime import CoreRuntime, RuntimeSettings, create_runtime, load_settings
from .summarizer import SummaryGenerator

__version__ = "1.0.0"

__all__ = [
    "Claim",
    "NoteCollection",
    "SummaryBundle",
    "ClaimStore",
    "DataLoadError",
    "CoreRuntime",
    "RuntimeSettings",
    "create_runtime",
    "load_settings",
    "SummaryGenerator",
]
