"""Host-facing plugin object.

The host framework looks models up lazily through ``resolve_action`` the
first time a name is referenced; nothing is registered eagerly. The backend
client binding is constructed once in ``initialize`` and passed explicitly to
the resolver, never stored in module state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from ailogic.config import PluginConfig
from ailogic.errors import DEFAULT_COMPONENT, InvalidArgumentError
from ailogic.generation_config import GenerationConfig, coerce_config
from ailogic.models import PROVIDER_PREFIX, canonical_name, is_canonical
from ailogic.providers.backend import create_backend_client
from ailogic.providers.mock import MockBackendClient
from ailogic.resolver import ModelHandle, ModelResolver
from ailogic.types import GenerateRequest

if TYPE_CHECKING:
    from ailogic.models import ModelDescriptor
    from ailogic.providers.base import BackendClient
    from ailogic.types import CanonicalResponse

log = logging.getLogger(__name__)

MODEL_ACTION = "model"


@dataclass(frozen=True)
class ModelReference:
    """A canonical model name plus optional per-call config.

    Building a reference never touches the backend; unknown names are only
    rejected when resolved.
    """

    name: str
    config: GenerationConfig | None = None


class AILogicPlugin:
    """Adapter plugin exposing backend models under the provider prefix."""

    name = PROVIDER_PREFIX

    def __init__(
        self,
        config: PluginConfig | None = None,
        *,
        client: BackendClient | None = None,
        component: str = DEFAULT_COMPONENT,
    ) -> None:
        self.config = config if config is not None else PluginConfig()
        self._client = client
        self._component = component
        self._resolver: ModelResolver | None = None

    def _build_client(self) -> BackendClient:
        if self._client is not None:
            return self._client
        if self.config.use_mock:
            return MockBackendClient()
        return create_backend_client(
            self.config.backend,
            api_key=self.config.api_key,
            project=self.config.project,
            region=self.config.vertex_region,
        )

    def initialize(self) -> ModelResolver:
        """Build the backend binding and resolver once; later calls reuse them."""
        if self._resolver is None:
            client = self._build_client()
            self._client = client
            self._resolver = ModelResolver(
                client,
                catalog=self.config.catalog,
                defaults=self.config.defaults,
                timeout_s=self.config.request_timeout_s,
                component=self._component,
            )
            log.info(
                "Firebase AI Logic plugin initialized with %s backend", client.backend
            )
        return self._resolver

    @property
    def resolver(self) -> ModelResolver:
        return self.initialize()

    def resolve_action(self, action: str, name: str) -> ModelHandle | None:
        """Host lookup hook: return the handle for *name*, or ``None``.

        ``None`` means the lookup is not for this plugin (another action, or
        another provider's namespace).

        Raises:
            UnsupportedModelError: For a name in this namespace that the
                catalog does not recognise.
        """
        if action != MODEL_ACTION or not is_canonical(name):
            return None
        return self.resolver.resolve(name)

    def model(
        self, name: str, config: GenerationConfig | Mapping[str, Any] | None = None
    ) -> ModelReference:
        """Return a reference to *name* (bare or canonical) with optional config."""
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("model name must be a non-empty str")
        ref_name = name if is_canonical(name) else canonical_name(name)
        return ModelReference(
            name=ref_name,
            config=coerce_config(config) if config is not None else None,
        )

    def list_models(self) -> tuple[ModelDescriptor, ...]:
        """Descriptors for every recognised model, registered or not."""
        return tuple(self.config.catalog.values())

    async def generate(
        self,
        request: GenerateRequest | Mapping[str, Any],
        *,
        model: str | ModelReference | None = None,
    ) -> CanonicalResponse:
        """Resolve *model* (or the configured default) and run one generation.

        A ``ModelReference`` config is used only when the request carries none.
        """
        if not isinstance(request, GenerateRequest):
            request = GenerateRequest.from_dict(request)

        if isinstance(model, ModelReference):
            if request.config is None and model.config is not None:
                request = GenerateRequest(messages=request.messages, config=model.config)
            model_name: str | None = model.name
        else:
            model_name = model or self.config.default_model
        if model_name is None:
            raise InvalidArgumentError(
                "no model given and no default_model configured",
                hint="Pass model=... or set PluginConfig(default_model=...).",
            )
        handle = self.resolver.resolve(model_name)
        return await handle.generate(request)
