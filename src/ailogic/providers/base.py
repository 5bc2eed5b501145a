"""Backend protocol: the minimal surface ailogic needs from a client SDK."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ailogic.generation_config import SystemInstruction


@dataclass(frozen=True)
class BackendModelOptions:
    """Everything needed to build a backend generation handle for one call."""

    model: str
    #: google-genai ``GenerateContentConfig`` keyword arguments.
    generation: dict[str, Any] = field(default_factory=dict)
    system_instruction: str | SystemInstruction | None = None


@runtime_checkable
class GenerativeModel(Protocol):
    """A model handle bound to one set of options."""

    async def generate_content(self, contents: Any) -> Any:
        """Run one generation call and return the raw backend response."""
        ...


@runtime_checkable
class BackendClient(Protocol):
    """Read-only client binding (credentials + backend selection).

    Built once at plugin setup and shared by every handle; it must not be
    mutated afterwards.
    """

    @property
    def backend(self) -> str:
        """Backend selector, e.g. ``"googleAI"`` or ``"vertexAI"``."""
        ...

    def generative_model(self, options: BackendModelOptions) -> GenerativeModel:
        """Return a handle for *options*."""
        ...
