"""Canonical, provider-agnostic request and response types.

These types keep callers decoupled from the google-genai SDK. Requests are
built from messages of tagged parts; responses come back as candidates plus
usage statistics. Everything here is immutable.
"""

from __future__ import annotations

import dataclasses
import typing

from ailogic.errors import InvalidArgumentError

from ._validation import _is_tuple_of, _read_only, _require

Role = typing.Literal["system", "user", "model"]
FinishReason = typing.Literal["stop", "length", "safety", "other"]

ROLES: frozenset[str] = frozenset({"system", "user", "model"})
FINISH_REASONS: frozenset[str] = frozenset({"stop", "length", "safety", "other"})


@dataclasses.dataclass(frozen=True, slots=True)
class TextPart:
    """Plain text content."""

    text: str

    def __post_init__(self) -> None:
        """Validate TextPart invariants."""
        _require(
            condition=isinstance(self.text, str),
            message="must be a str",
            field_name="text",
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {"text": self.text}


@dataclasses.dataclass(frozen=True, slots=True)
class MediaPart:
    """Media referenced by URL.

    ``url`` is either a ``data:<mime>;base64,<payload>`` URI (sent inline) or
    a remote-storage reference (sent as a file reference). The two are never
    interchangeable.
    """

    url: str
    content_type: str | None = None

    def __post_init__(self) -> None:
        """Validate MediaPart invariants."""
        _require(
            condition=isinstance(self.url, str) and self.url.strip() != "",
            message="must be a non-empty str",
            field_name="media.url",
        )
        _require(
            condition=self.content_type is None or isinstance(self.content_type, str),
            message="must be a str or None",
            field_name="media.contentType",
        )

    @property
    def is_data_uri(self) -> bool:
        return self.url.startswith("data:")

    def to_dict(self) -> dict[str, typing.Any]:
        media: dict[str, typing.Any] = {"url": self.url}
        if self.content_type is not None:
            media["contentType"] = self.content_type
        return {"media": media}


@dataclasses.dataclass(frozen=True, slots=True)
class ToolRequestPart:
    """A function call emitted by (or replayed to) the model."""

    name: str
    input: typing.Any = None

    def __post_init__(self) -> None:
        """Validate ToolRequestPart invariants."""
        _require(
            condition=isinstance(self.name, str) and self.name != "",
            message="must be a non-empty str",
            field_name="toolRequest.name",
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {"toolRequest": {"name": self.name, "input": self.input}}


@dataclasses.dataclass(frozen=True, slots=True)
class ToolResponsePart:
    """The result of a function call, supplied by the caller."""

    name: str
    output: typing.Any = None

    def __post_init__(self) -> None:
        """Validate ToolResponsePart invariants."""
        _require(
            condition=isinstance(self.name, str) and self.name != "",
            message="must be a non-empty str",
            field_name="toolResponse.name",
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return {"toolResponse": {"name": self.name, "output": self.output}}


Part = TextPart | MediaPart | ToolRequestPart | ToolResponsePart
_PART_TYPES = (TextPart, MediaPart, ToolRequestPart, ToolResponsePart)


def part_from_dict(data: typing.Mapping[str, typing.Any]) -> Part:
    """Build a part from its tagged dict shape.

    Accepts ``{"text": ...}``, ``{"media": {"url", "contentType"}}``,
    ``{"toolRequest": {"name", "input"}}`` and
    ``{"toolResponse": {"name", "output"}}``.
    """
    _require(
        condition=isinstance(data, typing.Mapping),
        message="part must be a mapping",
    )
    if data.get("text") is not None:
        return TextPart(data["text"])
    media = data.get("media")
    if isinstance(media, typing.Mapping):
        return MediaPart(
            url=media.get("url", ""),
            content_type=media.get("contentType", media.get("content_type")),
        )
    tool_request = data.get("toolRequest", data.get("tool_request"))
    if isinstance(tool_request, typing.Mapping):
        return ToolRequestPart(
            name=tool_request.get("name", ""), input=tool_request.get("input")
        )
    tool_response = data.get("toolResponse", data.get("tool_response"))
    if isinstance(tool_response, typing.Mapping):
        return ToolResponsePart(
            name=tool_response.get("name", ""), output=tool_response.get("output")
        )
    raise InvalidArgumentError(f"unrecognised part keys: {sorted(data)}")


def _is_sequence_input(value: typing.Any) -> bool:
    return isinstance(value, typing.Iterable) and not isinstance(
        value, (typing.Mapping, bytes)
    )


def _coerce_part(value: typing.Any) -> Part:
    if isinstance(value, _PART_TYPES):
        return value
    if isinstance(value, str):
        return TextPart(value)
    return part_from_dict(value)


@dataclasses.dataclass(frozen=True, slots=True)
class Message:
    """One conversation turn: a role and its ordered parts."""

    role: Role
    content: tuple[Part, ...] = ()

    def __post_init__(self) -> None:
        """Normalize content to a tuple of parts and validate the role."""
        _require(
            condition=isinstance(self.role, str) and self.role in ROLES,
            message=f"must be one of {sorted(ROLES)}, got {self.role!r}",
            field_name="role",
        )
        content = self.content
        if isinstance(content, str):
            content = (content,)
        _require(
            condition=_is_sequence_input(content),
            message=f"must be a str or a list of parts, got {type(content).__name__}",
            field_name="content",
        )
        object.__setattr__(self, "content", tuple(_coerce_part(p) for p in content))

    @classmethod
    def from_dict(cls, data: typing.Mapping[str, typing.Any]) -> Message:
        """Build a message from ``{"role": ..., "content": [...]}``."""
        _require(
            condition=isinstance(data, typing.Mapping),
            message="message must be a mapping",
        )
        return cls(role=data.get("role", ""), content=data.get("content") or ())

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(p.text for p in self.content if isinstance(p, TextPart))

    def to_dict(self) -> dict[str, typing.Any]:
        return {"role": self.role, "content": [p.to_dict() for p in self.content]}


@dataclasses.dataclass(frozen=True, slots=True)
class GenerateRequest:
    """A canonical generation request: the conversation plus per-call config.

    ``config`` may be a ``GenerationConfig`` or a plain mapping; it is
    validated when merged with plugin defaults.
    """

    messages: tuple[Message, ...]
    config: typing.Any = None

    def __post_init__(self) -> None:
        """Normalize messages to a tuple of ``Message``."""
        _require(
            condition=_is_sequence_input(self.messages)
            and not isinstance(self.messages, str),
            message=f"must be a list of messages, got {type(self.messages).__name__}",
            field_name="messages",
        )
        messages = tuple(
            m if isinstance(m, Message) else Message.from_dict(m)
            for m in self.messages
        )
        object.__setattr__(self, "messages", messages)

    @classmethod
    def from_dict(cls, data: typing.Mapping[str, typing.Any]) -> GenerateRequest:
        _require(
            condition=isinstance(data, typing.Mapping),
            message="request must be a mapping",
        )
        return cls(messages=data.get("messages") or (), config=data.get("config"))


@dataclasses.dataclass(frozen=True, slots=True)
class UsageStats:
    """Token counts reported by the backend; missing counters are 0."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self) -> None:
        """Validate counters are non-negative ints."""
        for name in ("input_tokens", "output_tokens", "total_tokens"):
            value = getattr(self, name)
            _require(
                condition=isinstance(value, int) and value >= 0,
                message=f"must be a non-negative int, got {value!r}",
                field_name=name,
            )

    def to_dict(self) -> dict[str, int]:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclasses.dataclass(frozen=True, slots=True)
class Candidate:
    """One generated alternative."""

    index: int
    content: tuple[Part, ...]
    finish_reason: FinishReason = "other"
    metadata: typing.Mapping[str, typing.Any] | None = None
    role: Role = "model"

    def __post_init__(self) -> None:
        """Validate Candidate invariants."""
        _require(
            condition=_is_tuple_of(self.content, _PART_TYPES),
            message="must be a tuple of parts",
            field_name="content",
        )
        _require(
            condition=self.finish_reason in FINISH_REASONS,
            message=f"must be one of {sorted(FINISH_REASONS)}",
            field_name="finish_reason",
        )
        object.__setattr__(self, "metadata", _read_only(self.metadata))

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.content if isinstance(p, TextPart))

    @property
    def tool_requests(self) -> tuple[ToolRequestPart, ...]:
        return tuple(p for p in self.content if isinstance(p, ToolRequestPart))

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "index": self.index,
            "message": {
                "role": self.role,
                "content": [p.to_dict() for p in self.content],
            },
            "finishReason": self.finish_reason,
            "custom": dict(self.metadata or {}),
        }


@dataclasses.dataclass(frozen=True, slots=True)
class CanonicalResponse:
    """Normalized result of one generation call."""

    candidates: tuple[Candidate, ...] = ()
    usage: UsageStats = dataclasses.field(default_factory=UsageStats)
    metadata: typing.Mapping[str, typing.Any] | None = None

    def __post_init__(self) -> None:
        """Freeze candidates and metadata."""
        object.__setattr__(self, "candidates", tuple(self.candidates))
        object.__setattr__(self, "metadata", _read_only(self.metadata))

    @property
    def text(self) -> str:
        """Text of the first candidate, or an empty string."""
        return self.candidates[0].text if self.candidates else ""

    def to_dict(self) -> dict[str, typing.Any]:
        return {
            "candidates": [c.to_dict() for c in self.candidates],
            "usage": self.usage.to_dict(),
            "custom": dict(self.metadata or {}),
        }
