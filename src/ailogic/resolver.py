"""Lazy model registry and the per-model generation handle.

A model name moves from unregistered to registered the first time it is
resolved; resolving it again returns the same handle. Handles for different
names are independent of each other. Every handle shares the one backend
client binding it was created with.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from ailogic.errors import (
    DEFAULT_COMPONENT,
    AILogicError,
    BackendInternalError,
    InternalError,
    UnsupportedModelError,
)
from ailogic.generation_config import GenerationConfig, coerce_config, merge_config
from ailogic.models import ModelCatalog, internal_name, is_canonical
from ailogic.providers._errors import classify_error
from ailogic.providers.base import BackendModelOptions
from ailogic.providers.normalize import normalize_response
from ailogic.providers.translate import BackendContent, translate_request
from ailogic.types import CanonicalResponse, GenerateRequest

if TYPE_CHECKING:
    from ailogic.models import ModelDescriptor
    from ailogic.providers.base import BackendClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedCall:
    """A fully validated backend call that has not been sent yet."""

    options: BackendModelOptions
    contents: BackendContent


class ModelHandle:
    """A registered model, ready to accept generation calls.

    Handles hold no per-call state, so one handle may serve concurrent
    ``generate`` calls.
    """

    def __init__(
        self,
        descriptor: ModelDescriptor,
        client: BackendClient,
        *,
        defaults: GenerationConfig | None = None,
        timeout_s: float | None = None,
        component: str = DEFAULT_COMPONENT,
    ) -> None:
        self.descriptor = descriptor
        self._client = client
        self._defaults = defaults or GenerationConfig()
        self._timeout_s = timeout_s
        self._component = component

    @property
    def name(self) -> str:
        """Canonical (namespaced) model name."""
        return self.descriptor.canonical_name

    def prepare(self, request: GenerateRequest | Mapping[str, Any]) -> PreparedCall:
        """Merge config and translate the request without calling the backend.

        Raises:
            ConfigValidationError: If the merged config is out of range.
            EmptyContentError: If there is nothing to send.
            InvalidArgumentError: If a part cannot be encoded.
            InternalError: For any unexpected local failure.
        """
        try:
            if not isinstance(request, GenerateRequest):
                request = GenerateRequest.from_dict(request)
            config = merge_config(request.config, self._defaults)
            translated = translate_request(request.messages, config)
            options = BackendModelOptions(
                model=self.descriptor.internal_name,
                generation=config.to_backend_options(),
                system_instruction=translated.system_instruction,
            )
        except AILogicError:
            raise
        except Exception as e:
            raise InternalError(str(e), component=self._component) from e
        return PreparedCall(options=options, contents=translated.contents)

    async def generate(
        self, request: GenerateRequest | Mapping[str, Any]
    ) -> CanonicalResponse:
        """Run one generation call and return the normalized response.

        Raises:
            AILogicError: A validation error before the call, or the classified
                backend failure.
        """
        prepared = self.prepare(request)
        model = self._client.generative_model(prepared.options)
        raw = await self._call_backend(model, prepared.contents)
        return normalize_response(raw)

    async def _call_backend(self, model: Any, contents: BackendContent) -> Any:
        try:
            if self._timeout_s is not None:
                return await asyncio.wait_for(
                    model.generate_content(contents), timeout=self._timeout_s
                )
            return await model.generate_content(contents)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as e:
            raise BackendInternalError(
                f"backend call timed out after {self._timeout_s}s",
                component=self._component,
                retryable=True,
            ) from e
        except Exception as e:
            err = classify_error(e, component=self._component)
            log.debug("Backend call for %s failed: %s (%s)", self.name, err, err.kind)
            raise err from e

    def __repr__(self) -> str:
        return f"ModelHandle({self.name!r})"


class ModelResolver:
    """Registry that materializes model handles on first reference."""

    def __init__(
        self,
        client: BackendClient,
        *,
        catalog: ModelCatalog | None = None,
        defaults: GenerationConfig | Mapping[str, Any] | None = None,
        timeout_s: float | None = None,
        component: str = DEFAULT_COMPONENT,
    ) -> None:
        self._client = client
        self._catalog = catalog if catalog is not None else ModelCatalog()
        self._defaults = coerce_config(defaults, origin="plugin default")
        self._timeout_s = timeout_s
        self._component = component
        self._handles: dict[str, ModelHandle] = {}

    @property
    def catalog(self) -> ModelCatalog:
        return self._catalog

    def resolve(self, name: str) -> ModelHandle:
        """Return the handle for *name*, creating it on first use.

        *name* may be canonical (``firebase-ai-logic/gemini-2.5-flash``) or a
        bare catalog name.

        Raises:
            UnsupportedModelError: If the name is not in the catalog. Nothing
                is registered in that case.
        """
        bare = internal_name(name) if is_canonical(name) else name
        existing = self._handles.get(bare)
        if existing is not None:
            return existing

        descriptor = self._catalog.lookup(bare)
        if descriptor is None:
            raise UnsupportedModelError(
                name,
                component=self._component,
                hint=f"Supported models: {', '.join(self._catalog)}",
            )

        handle = ModelHandle(
            descriptor,
            self._client,
            defaults=self._defaults,
            timeout_s=self._timeout_s,
            component=self._component,
        )
        self._handles[bare] = handle
        log.debug("Registered model %s", handle.name)
        return handle

    def get(self, name: str) -> ModelHandle | None:
        """Return an already-registered handle without registering anything."""
        bare = internal_name(name) if is_canonical(name) else name
        return self._handles.get(bare)

    def registered(self) -> tuple[str, ...]:
        """Canonical names registered so far, in registration order."""
        return tuple(h.name for h in self._handles.values())
