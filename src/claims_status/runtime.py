"""Runtime bootstrap helpers for the claim status service."""

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .azure_llm import AsyncAzureOpenAI, build_azure_client
from .observability import DEFAULT_SERVICE_NAME, configure_logging, configure_telemetry
from .repository import ClaimStore
from .summarizer import (
    DEFAULT_DEPLOYMENT,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    SummaryGenerator,
)

logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"


@dataclass(frozen=True)
class AzureSettings:
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    use_entra_id: bool = False
    deployment: str = DEFAULT_DEPLOYMENT
    api_version: str = "2024-02-01"
    timeout_seconds: float = 30.0
    max_retries: int = 1
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    temperature: Optional[float] = DEFAULT_TEMPERATURE

    @property
    def configured(self) -> bool:
        return bool(self.endpoint) and (bool(self.api_key) or self.use_entra_id)


@dataclass(frozen=True)
class ServiceSettings:
    data_dir: Path = field(default_factory=lambda: Path.cwd() / "mocks")
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


@dataclass(frozen=True)
class ObservabilitySettings:
    enabled: bool = False
    endpoint: Optional[str] = None
    service_name: str = DEFAULT_SERVICE_NAME


@dataclass(frozen=True)
class RuntimeSettings:
    azure: AzureSettings
    service: ServiceSettings
    observability: ObservabilitySettings


def _truthy(value: str | None) -> bool:
    return bool(value) and value.lower() in {"1", "true", "yes", "on"}


def _parse_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc
    if value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}")
    return value


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be numeric") from exc


def load_settings(env_path: Optional[Path] = None) -> RuntimeSettings:
    """
    Load settings from the environment, reading ``env_path`` first if present.

    Values already exported in the environment win over the ``.env`` file.
    A missing endpoint or credential is not an error; the summary generator
    then runs in mock mode.
    """
    env_path = env_path or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded environment from: %s", env_path)

    azure = AzureSettings(
        endpoint=os.getenv("AZURE_OPENAI_ENDPOINT") or None,
        api_key=os.getenv("AZURE_OPENAI_API_KEY") or None,
        use_entra_id=_truthy(os.getenv("AZURE_OPENAI_USE_ENTRA_ID")),
        deployment=(
            os.getenv("AZURE_OPENAI_DEPLOYMENT")
            or os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME")
            or DEFAULT_DEPLOYMENT
        ),
        api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-01"),
        timeout_seconds=_parse_float("AZURE_OPENAI_TIMEOUT_SECONDS", 30.0),
        max_retries=_parse_int("AZURE_OPENAI_MAX_RETRIES", 1),
        max_output_tokens=_parse_int(
            "AZURE_OPENAI_MAX_OUTPUT_TOKENS", DEFAULT_MAX_OUTPUT_TOKENS, minimum=1
        ),
        temperature=_parse_float("AZURE_OPENAI_TEMPERATURE", DEFAULT_TEMPERATURE),
    )

    data_dir = os.getenv("CLAIMS_DATA_DIR")
    origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
    service = ServiceSettings(
        data_dir=Path(data_dir) if data_dir else Path.cwd() / "mocks",
        host=os.getenv("HOST", "0.0.0.0"),
        port=_parse_int("PORT", 3000, minimum=1),
        cors_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    observability = ObservabilitySettings(
        enabled=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") is not None,
        endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"),
        service_name=os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
    )

    return RuntimeSettings(azure=azure, service=service, observability=observability)


class CoreRuntime:
    """
    Bootstrap helper for the claim status service.

    Handles:
    - Environment configuration loading
    - Logging and optional telemetry setup
    - Claim store loading (fatal on failure)
    - Azure OpenAI client creation and generator wiring

    Attributes:
        settings: Resolved runtime settings
        store: Loaded ClaimStore
        generator: SummaryGenerator holding the shared completion client
    """

    def __init__(
        self,
        settings: Optional[RuntimeSettings] = None,
        *,
        env_path: Optional[Path] = None,
        client: Optional[AsyncAzureOpenAI] = None,
    ):
        self.env_path = env_path
        self.settings = settings
        self.store: Optional[ClaimStore] = None
        self.generator: Optional[SummaryGenerator] = None
        self._client = client

    async def bootstrap(self) -> "CoreRuntime":
        """
        Bootstrap the runtime.

        Steps:
        1. Load settings and configure logging
        2. Initialize observability
        3. Load the claim store
        4. Build the completion client and summary generator

        Returns:
            Self (for chaining)

        Raises:
            DataLoadError: If either data document is missing or invalid
        """
        if self.settings is None:
            self.settings = load_settings(self.env_path)

        configure_logging(self.settings.service.log_level)
        self._initialize_observability()

        self.store = ClaimStore.from_directory(self.settings.service.data_dir)

        azure = self.settings.azure
        if self._client is None and azure.configured:
            self._client = build_azure_client(azure)
            logger.info(
                "Azure OpenAI initialized: deployment=%s, endpoint=%s",
                azure.deployment,
                azure.endpoint,
            )
        elif self._client is None:
            logger.warning("Azure OpenAI not configured. AI summaries will run in mock mode.")

        self.generator = SummaryGenerator(
            self._client,
            deployment=azure.deployment,
            max_output_tokens=azure.max_output_tokens,
            temperature=azure.temperature,
        )

        logger.info("Available claims: %s", ", ".join(self.store.claim_ids()))
        return self

    def _initialize_observability(self) -> None:
        observability = self.settings.observability
        if not observability.enabled:
            logger.info("Observability disabled (no OTEL_EXPORTER_OTLP_ENDPOINT)")
            return

        configure_telemetry(
            endpoint=observability.endpoint,
            service_name=observability.service_name,
            service_version=SERVICE_VERSION,
        )

    @property
    def ai_status(self) -> str:
        return "connected" if self.generator and self.generator.connected else "mock_mode"

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            logger.info("Azure OpenAI client closed")


async def create_runtime(
    settings: Optional[RuntimeSettings] = None,
    *,
    env_path: Optional[Path] = None,
    client: Optional[AsyncAzureOpenAI] = None,
) -> CoreRuntime:
    """Create and bootstrap a runtime."""
    runtime = CoreRuntime(settings, env_path=env_path, client=client)
    await runtime.bootstrap()
    return runtime
