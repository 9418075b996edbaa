"""Azure OpenAI helpers for the claim summary generator."""

from __future__ import annotations

from typing import Any, Dict, List, TYPE_CHECKING

from azure.identity.aio import DefaultAzureCredential, get_bearer_token_provider
from openai import AsyncAzureOpenAI

if TYPE_CHECKING:  # pragma: no cover - typing aid only
    from .runtime import AzureSettings

COGNITIVE_SERVICES_SCOPE = "https://cognitiveservices.azure.com/.default"


def build_azure_client(settings: "AzureSettings") -> AsyncAzureOpenAI:
    """Instantiate AsyncAzureOpenAI with key or Entra auth.

    Callers check ``settings.configured`` first; an unconfigured settings
    object is a programming error here.
    """

    if not settings.configured:
        raise RuntimeError("AZURE_OPENAI_ENDPOINT and a credential must be set")

    common: Dict[str, Any] = {
        "api_version": settings.api_version,
        "azure_endpoint": settings.endpoint,
        "timeout": settings.timeout_seconds,
        "max_retries": settings.max_retries,
    }

    if settings.api_key:
        return AsyncAzureOpenAI(api_key=settings.api_key, **common)

    credential = DefaultAzureCredential(exclude_interactive_browser_credential=True)
    token_provider = get_bearer_token_provider(credential, COGNITIVE_SERVICES_SCOPE)
    return AsyncAzureOpenAI(azure_ad_token_provider=token_provider, **common)


def build_completion_kwargs(
    *,
    deployment: str,
    system: str,
    prompt: str,
    max_output_tokens: int,
    temperature: float | None,
) -> Dict[str, Any]:
    """Construct the kwargs for ``client.chat.completions.create``."""

    messages: List[Dict[str, str]] = [
        {"role": "system", "content": system},
        {"role": "user", "content": prompt},
    ]
    kwargs: Dict[str, Any] = {
        "model": deployment,
        "messages": messages,
        "max_tokens": max_output_tokens,
    }
    if temperature is not None:
        kwargs["temperature"] = temperature
    return kwargs


def extract_response_text(response: Any) -> str:
    """Extract the stripped message text from a Chat Completions response.

    A response without choices is treated as a malformed envelope; an empty
    or missing message body is returned as an empty string.
    """
    if not getattr(response, "choices", None):
        raise ValueError(f"Invalid response structure: {response!r}")

    message = getattr(response.choices[0], "message", None)
    if message is None:
        raise ValueError(f"Could not extract text from response: {response!r}")

    return (getattr(message, "content", None) or "").strip()


def extract_total_tokens(response: Any) -> int:
    usage = getattr(response, "usage", None)
    total = getattr(usage, "total_tokens", None) if usage is not None else None
    return int(total) if isinstance(total, int) and total > 0 else 0


__all__ = [
    "AsyncAzureOpenAI",
    "build_azure_client",
    "build_completion_kwargs",
    "extract_response_text",
    "extract_total_tokens",
]
