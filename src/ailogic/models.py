"""Model catalog and the canonical naming convention.

Externally visible model identifiers are ``"firebase-ai-logic/<bare name>"``.
The prefix is applied exactly once when a model is registered and stripped
exactly once before the bare name reaches the backend.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ailogic.errors import UnsupportedModelError

PROVIDER_PREFIX = "firebase-ai-logic"
_SEPARATOR = "/"


def canonical_name(bare_name: str) -> str:
    """Return the namespaced identifier for *bare_name*."""
    return f"{PROVIDER_PREFIX}{_SEPARATOR}{bare_name}"


def is_canonical(name: str) -> bool:
    return name.startswith(PROVIDER_PREFIX + _SEPARATOR)


def internal_name(name: str) -> str:
    """Strip the provider prefix once and return the bare backend name.

    Raises:
        UnsupportedModelError: If *name* is not in this provider's namespace.
    """
    if not is_canonical(name):
        raise UnsupportedModelError(
            f"{name!r} is not a {PROVIDER_PREFIX} model",
            hint=f"Model names look like '{canonical_name('gemini-2.5-flash')}'.",
        )
    return name[len(PROVIDER_PREFIX) + len(_SEPARATOR) :]


@dataclass(frozen=True)
class ModelCapabilities:
    """Feature flags advertised for a model."""

    multiturn: bool = True
    media: bool = True
    tools: bool = True
    system_role: bool = True
    output: tuple[str, ...] = ("text", "json")

    def to_dict(self) -> dict[str, object]:
        return {
            "multiturn": self.multiturn,
            "media": self.media,
            "tools": self.tools,
            "systemRole": self.system_role,
            "output": list(self.output),
        }


@dataclass(frozen=True)
class ModelDescriptor:
    """A recognised model: its canonical name, backend name and capabilities."""

    internal_name: str
    label: str
    capabilities: ModelCapabilities = field(default_factory=ModelCapabilities)

    @property
    def canonical_name(self) -> str:
        return canonical_name(self.internal_name)


#: Recognised bare model names. Extend here when the backend adds models.
DEFAULT_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor("gemini-2.5-flash", "Gemini 2.5 Flash"),
    ModelDescriptor("gemini-2.0-flash", "Gemini 2.0 Flash"),
    ModelDescriptor("gemini-1.5-pro", "Gemini 1.5 Pro"),
    ModelDescriptor("gemini-1.5-flash", "Gemini 1.5 Flash"),
)


class ModelCatalog(Mapping[str, ModelDescriptor]):
    """Closed, read-only mapping from bare model name to descriptor."""

    def __init__(self, descriptors: Iterable[ModelDescriptor] = DEFAULT_MODELS) -> None:
        self._by_name: Mapping[str, ModelDescriptor] = MappingProxyType(
            {d.internal_name: d for d in descriptors}
        )

    def __getitem__(self, bare_name: str) -> ModelDescriptor:
        return self._by_name[bare_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    def lookup(self, bare_name: str) -> ModelDescriptor | None:
        """Return the descriptor for *bare_name*, or ``None`` when unknown."""
        return self._by_name.get(bare_name)

    def restrict(self, bare_names: Iterable[str]) -> ModelCatalog:
        """Return a catalog limited to *bare_names*.

        Raises:
            UnsupportedModelError: If any name is not in this catalog.
        """
        names = list(bare_names)
        unknown = [n for n in names if n not in self._by_name]
        if unknown:
            raise UnsupportedModelError(
                f"unknown model(s) {unknown}",
                hint=f"Known models: {sorted(self._by_name)}",
            )
        return ModelCatalog(self._by_name[n] for n in names)

    def __repr__(self) -> str:
        return f"ModelCatalog({sorted(self._by_name)})"
