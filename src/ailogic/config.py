"""Configuration: frozen plugin config with explicit backend selection."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import os
from typing import Any, cast

from dotenv import load_dotenv

from ailogic.errors import ConfigValidationError
from ailogic.generation_config import GenerationConfig, SafetySetting, coerce_config
from ailogic.models import DEFAULT_MODELS, ModelCatalog, canonical_name, is_canonical
from ailogic.providers.backend import BACKENDS, DEFAULT_VERTEX_REGION, BackendName

load_dotenv()

# Checked in order when api_key is not passed explicitly.
_API_KEY_ENV_VARS: tuple[str, ...] = ("GEMINI_API_KEY", "GOOGLE_API_KEY")
_PROJECT_ENV_VAR = "GOOGLE_CLOUD_PROJECT"


@dataclass(frozen=True)
class PluginConfig:
    """Immutable plugin-level configuration.

    Example:
        config = PluginConfig(backend="vertexAI", project="my-project")
        # vertex_region defaults to us-central1
    """

    backend: BackendName = "googleAI"
    #: Auto-resolved from ``GEMINI_API_KEY`` or ``GOOGLE_API_KEY`` when *None*.
    api_key: str | None = None
    #: Vertex AI only; auto-resolved from ``GOOGLE_CLOUD_PROJECT`` when *None*.
    project: str | None = None
    vertex_region: str = DEFAULT_VERTEX_REGION
    default_model: str | None = None
    default_generation_config: GenerationConfig | Mapping[str, Any] | None = None
    default_safety_settings: tuple[SafetySetting | Mapping[str, Any], ...] | None = None
    #: Bare model names to recognise; *None* means the whole built-in catalog.
    supported_models: tuple[str, ...] | None = None
    request_timeout_s: float | None = None
    use_mock: bool = False
    catalog: ModelCatalog = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Resolve credentials from the environment and validate."""
        if self.backend not in BACKENDS:
            raise ConfigValidationError(
                f"Unknown backend: {self.backend!r}",
                hint=f"Supported backends: {', '.join(BACKENDS)}",
            )

        if self.request_timeout_s is not None and self.request_timeout_s <= 0:
            raise ConfigValidationError(
                f"request_timeout_s must be > 0, got {self.request_timeout_s}",
                hint="Leave it as None to rely on the transport's own timeout.",
            )

        defaults = coerce_config(self.default_generation_config, origin="plugin default")
        if self.default_safety_settings is not None:
            defaults = coerce_config(
                {
                    **defaults.present_fields(),
                    "safety_settings": tuple(self.default_safety_settings),
                },
                origin="plugin default",
            )
        object.__setattr__(self, "default_generation_config", defaults)

        catalog = ModelCatalog(DEFAULT_MODELS)
        if self.supported_models is not None:
            catalog = catalog.restrict(self.supported_models)
        object.__setattr__(self, "catalog", catalog)

        if self.default_model is not None:
            if not is_canonical(self.default_model):
                object.__setattr__(
                    self, "default_model", canonical_name(self.default_model)
                )

        if self.use_mock:
            return

        if self.backend == "googleAI" and self.api_key is None:
            resolved = next(
                (os.environ[v] for v in _API_KEY_ENV_VARS if os.environ.get(v)), None
            )
            object.__setattr__(self, "api_key", resolved)
        if self.backend == "vertexAI" and self.project is None:
            object.__setattr__(self, "project", os.environ.get(_PROJECT_ENV_VAR))

        if self.backend == "googleAI" and not self.api_key:
            raise ConfigValidationError(
                "API key required for the googleAI backend",
                hint="Set GEMINI_API_KEY environment variable or pass api_key=...",
            )

    @property
    def defaults(self) -> GenerationConfig:
        """Plugin-level generation defaults, safety settings included."""
        return cast(GenerationConfig, self.default_generation_config)

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"PluginConfig(backend={self.backend!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None}, "
            f"project={self.project!r}, vertex_region={self.vertex_region!r}, "
            f"use_mock={self.use_mock})"
        )

    __repr__ = __str__
