"""Generation config schema and the per-call/default merge.

The schema is the single place where ranges are declared; anything that fails
it is rejected locally with ``ConfigValidationError`` before a backend call is
attempted. Values are never clamped.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ailogic.errors import ConfigValidationError

_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    populate_by_name=True,
    alias_generator=to_camel,
)


class SafetySetting(BaseModel):
    """One harm category threshold, passed to the backend unchanged."""

    model_config = _MODEL_CONFIG

    category: str
    threshold: str
    method: str | None = None


class SystemInstructionPart(BaseModel):
    model_config = _MODEL_CONFIG

    text: str


class SystemInstruction(BaseModel):
    """Structured system instruction: ``{"role": "system", "parts": [...]}``."""

    model_config = _MODEL_CONFIG

    role: Literal["system"] = "system"
    parts: tuple[SystemInstructionPart, ...]

    @property
    def text(self) -> str:
        return "\n".join(p.text for p in self.parts)


class GenerationConfig(BaseModel):
    """Per-call or plugin-level generation options.

    Field names are snake_case; the camelCase spellings used by the canonical
    JSON request (``topK``, ``maxOutputTokens``...) are accepted as aliases.
    A field left as ``None`` is absent and is not sent to the backend.
    """

    model_config = _MODEL_CONFIG

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_k: int | None = Field(default=None, gt=0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    max_output_tokens: int | None = Field(default=None, gt=0)
    stop_sequences: tuple[str, ...] | None = None
    candidate_count: int | None = Field(default=None, ge=1, le=8)
    response_mime_type: str | None = None
    #: Arbitrary JSON schema for structured output.
    response_schema: Any = None
    system_instruction: str | SystemInstruction | None = None
    safety_settings: tuple[SafetySetting, ...] | None = None
    #: Opaque tool declarations.
    tools: tuple[Any, ...] | None = None
    #: Opaque, e.g. ``{"functionCallingConfig": {"mode": "ANY"}}``.
    tool_config: dict[str, Any] | None = None

    @field_validator("top_k", "max_output_tokens", "candidate_count", mode="before")
    @classmethod
    def reject_bools(cls, v: Any) -> Any:
        """Keep ``True``/``False`` from passing as integer 1/0."""
        if isinstance(v, bool):
            raise ValueError("must be an integer, not a bool")
        return v

    def present_fields(self) -> dict[str, Any]:
        """Return the fields that are set (not ``None``), by field name."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if getattr(self, name) is not None
        }

    def to_backend_options(self) -> dict[str, Any]:
        """Build backend model options, excluding the system instruction.

        The system instruction is resolved against the conversation by the
        request translator, so it is not emitted here. Keys follow the
        google-genai ``GenerateContentConfig`` field names.
        """
        present = self.present_fields()
        present.pop("system_instruction", None)

        options: dict[str, Any] = {}
        for name in (
            "temperature",
            "top_k",
            "top_p",
            "max_output_tokens",
            "candidate_count",
            "response_mime_type",
        ):
            if name in present:
                options[name] = present[name]
        if "stop_sequences" in present:
            options["stop_sequences"] = list(present["stop_sequences"])
        if "response_schema" in present:
            options["response_json_schema"] = present["response_schema"]
            options.setdefault("response_mime_type", "application/json")
        if "safety_settings" in present:
            options["safety_settings"] = [
                s.model_dump(exclude_none=True) for s in present["safety_settings"]
            ]
        if "tools" in present:
            options["tools"] = list(present["tools"])
        if "tool_config" in present:
            options["tool_config"] = present["tool_config"]
        return options


ConfigInput = GenerationConfig | Mapping[str, Any] | None


def coerce_config(value: ConfigInput, *, origin: str = "request") -> GenerationConfig:
    """Validate *value* into a ``GenerationConfig``.

    Raises:
        ConfigValidationError: When a field is unknown, mistyped, or out of range.
    """
    if value is None:
        return GenerationConfig()
    if isinstance(value, GenerationConfig):
        return value
    if not isinstance(value, Mapping):
        raise ConfigValidationError(
            f"{origin} config must be a mapping or GenerationConfig, "
            f"got {type(value).__name__}"
        )
    try:
        return GenerationConfig.model_validate(dict(value))
    except ValidationError as e:
        problems = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            msg = err.get("msg", "")
            # Remove "Value error, " prefix if present (Pydantic standard wrapper)
            if msg.startswith("Value error, "):
                msg = msg[13:]
            problems.append(f"{loc}: {msg}" if loc else msg)
        raise ConfigValidationError(
            f"{origin} config failed validation: {'; '.join(problems)}",
            hint="temperature 0-2, topP 0-1, topK/maxOutputTokens > 0, "
            "candidateCount 1-8.",
        ) from e


def merge_config(
    call: ConfigInput = None, defaults: ConfigInput = None
) -> GenerationConfig:
    """Merge per-call config over plugin defaults.

    A field set on the call wins; otherwise the default applies; otherwise
    the field stays absent. Neither input is mutated.
    """
    call_cfg = coerce_config(call, origin="request")
    default_cfg = coerce_config(defaults, origin="plugin default")
    return default_cfg.model_copy(update=call_cfg.present_fields())
