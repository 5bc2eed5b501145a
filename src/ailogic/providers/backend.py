"""google-genai client binding.

Covers both the Gemini Developer API (``googleAI``) and Vertex AI
(``vertexAI``). The client is created once and only read afterwards; every
generation call builds a fresh ``GenerateContentConfig``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from ailogic.errors import ConfigValidationError
from ailogic.providers.base import BackendModelOptions

if TYPE_CHECKING:
    from ailogic.generation_config import SystemInstruction

log = logging.getLogger(__name__)

BackendName = Literal["googleAI", "vertexAI"]
BACKENDS: tuple[str, ...] = ("googleAI", "vertexAI")
DEFAULT_VERTEX_REGION = "us-central1"


def _to_system_instruction(value: str | SystemInstruction | None) -> Any:
    from google.genai import types

    if value is None or isinstance(value, str):
        return value
    return types.Content(parts=[types.Part(text=p.text) for p in value.parts])


class GenAIGenerativeModel:
    """Generation handle: a shared client plus this call's options."""

    def __init__(self, client: Any, options: BackendModelOptions) -> None:
        self._client = client
        self.options = options

    def build_config(self) -> Any:
        """Build the google-genai ``GenerateContentConfig`` for this handle."""
        from google.genai import types

        config_kwargs = dict(self.options.generation)
        system_instruction = _to_system_instruction(self.options.system_instruction)
        if system_instruction is not None:
            config_kwargs["system_instruction"] = system_instruction
        return types.GenerateContentConfig(**config_kwargs)

    async def generate_content(self, contents: Any) -> Any:
        """Send *contents* to the backend and return the raw response."""
        log.debug("generate_content model=%s", self.options.model)
        return await self._client.aio.models.generate_content(
            model=self.options.model,
            contents=contents,
            config=self.build_config(),
        )


class GenAIBackendClient:
    """Read-only binding of a ``google.genai.Client`` to one backend."""

    def __init__(
        self, client: Any, *, backend: BackendName, region: str | None = None
    ) -> None:
        self._client = client
        self._backend = backend
        self._region = region

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def region(self) -> str | None:
        return self._region

    def generative_model(self, options: BackendModelOptions) -> GenAIGenerativeModel:
        return GenAIGenerativeModel(self._client, options)

    def __repr__(self) -> str:
        region = f", region={self._region!r}" if self._region else ""
        return f"GenAIBackendClient(backend={self._backend!r}{region})"


def create_backend_client(
    backend: str = "googleAI",
    *,
    api_key: str | None = None,
    project: str | None = None,
    region: str | None = None,
) -> GenAIBackendClient:
    """Construct the backend client binding.

    Raises:
        ConfigValidationError: For an unknown backend or missing credentials.
    """
    if backend not in BACKENDS:
        raise ConfigValidationError(
            f"Unsupported backend: {backend!r}",
            hint=f"Supported backends: {', '.join(BACKENDS)}",
        )

    try:
        from google import genai
    except ImportError as e:
        raise ConfigValidationError(
            "google-genai package not installed",
            hint="pip install google-genai",
        ) from e

    if backend == "vertexAI":
        location = region or DEFAULT_VERTEX_REGION
        client = genai.Client(vertexai=True, project=project, location=location)
        return GenAIBackendClient(client, backend="vertexAI", region=location)

    if not api_key:
        raise ConfigValidationError(
            "API key required for the googleAI backend",
            hint="Set GEMINI_API_KEY or pass PluginConfig(api_key=...).",
        )
    return GenAIBackendClient(genai.Client(api_key=api_key), backend="googleAI")
