"""Canonical request -> single backend call content.

The backend call is single-turn. Only the most recent ``user`` message is
sent; earlier user and model turns are dropped, and continuity has to come
from the system instruction or from state the caller manages. Callers rely on
this exact reduction, so it must not grow a history merge.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import logging
import mimetypes
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote_to_bytes

from google.genai import types as genai_types

from ailogic.errors import EmptyContentError, InvalidArgumentError
from ailogic.types import (
    MediaPart,
    Message,
    Part,
    TextPart,
    ToolRequestPart,
    ToolResponsePart,
)

if TYPE_CHECKING:
    from ailogic.generation_config import GenerationConfig, SystemInstruction

log = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[^;,]*)(?P<params>(?:;[^;,]*)*),(?P<payload>.*)$", re.DOTALL
)
REMOTE_URI_PREFIXES: tuple[str, ...] = ("gs://", "https://", "http://")

BackendContent = str | list[genai_types.Part]


@dataclass(frozen=True)
class TranslatedRequest:
    """Backend call content plus the resolved system instruction."""

    contents: BackendContent
    system_instruction: str | SystemInstruction | None = None


def resolve_system_instruction(
    messages: Sequence[Message], config: GenerationConfig | None
) -> str | SystemInstruction | None:
    """Pick the one system instruction to honour.

    A config-level instruction wins outright; the first ``system`` message is
    used only when the config has none. The two are never merged.
    """
    if config is not None and config.system_instruction is not None:
        return config.system_instruction
    for message in messages:
        if message.role == "system":
            text = "\n".join(
                p.text for p in message.content if isinstance(p, TextPart)
            )
            return text or None
    return None


def last_user_message(messages: Sequence[Message]) -> Message | None:
    for message in reversed(messages):
        if message.role == "user":
            return message
    return None


def decode_data_uri(url: str, declared_type: str | None = None) -> tuple[str, bytes]:
    """Return ``(mime_type, payload_bytes)`` for a ``data:`` URI.

    Raises:
        InvalidArgumentError: If the URI is malformed or carries no MIME type.
    """
    m = _DATA_URI_RE.match(url)
    if m is None:
        raise InvalidArgumentError("malformed data URI: missing ',' separator")
    mime_type = m.group("mime").strip() or (declared_type or "")
    if not mime_type:
        raise InvalidArgumentError("data URI has no MIME type")
    params = [p.strip().lower() for p in m.group("params").split(";") if p.strip()]
    payload = m.group("payload")
    if "base64" in params:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidArgumentError(
                f"data URI payload is not valid base64: {e}"
            ) from e
    else:
        data = unquote_to_bytes(payload)
    return mime_type, data


def _media_part(part: MediaPart) -> genai_types.Part:
    if part.is_data_uri:
        mime_type, data = decode_data_uri(part.url, part.content_type)
        return genai_types.Part(
            inline_data=genai_types.Blob(mime_type=mime_type, data=data)
        )
    if part.url.startswith(REMOTE_URI_PREFIXES):
        mime_type = part.content_type or mimetypes.guess_type(part.url)[0]
        if not mime_type:
            raise InvalidArgumentError(
                f"media {part.url!r} needs a contentType",
            )
        return genai_types.Part(
            file_data=genai_types.FileData(file_uri=part.url, mime_type=mime_type)
        )
    raise InvalidArgumentError(
        f"unsupported media URL {part.url[:64]!r}; expected a data: URI or "
        f"one of {list(REMOTE_URI_PREFIXES)}"
    )


def _function_call_args(value: Any, name: str) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return dict(value)
    raise InvalidArgumentError(
        f"toolRequest {name!r} input must be an object, got {type(value).__name__}"
    )


def _function_response_body(value: Any) -> dict[str, Any]:
    # The backend only accepts an object here.
    if isinstance(value, Mapping):
        return dict(value)
    return {"result": value}


def to_backend_part(part: Part) -> genai_types.Part | None:
    """Translate one canonical part; ``None`` for parts with nothing to send."""
    if isinstance(part, TextPart):
        return genai_types.Part(text=part.text) if part.text else None
    if isinstance(part, MediaPart):
        return _media_part(part)
    if isinstance(part, ToolRequestPart):
        return genai_types.Part(
            function_call=genai_types.FunctionCall(
                name=part.name, args=_function_call_args(part.input, part.name)
            )
        )
    if isinstance(part, ToolResponsePart):
        return genai_types.Part(
            function_response=genai_types.FunctionResponse(
                name=part.name, response=_function_response_body(part.output)
            )
        )
    return None


def translate_request(
    messages: Sequence[Message], config: GenerationConfig | None = None
) -> TranslatedRequest:
    """Translate a conversation into one backend call.

    Empty text parts are skipped. Returns a bare string when what remains of
    the active turn is exactly one text part, otherwise the ordered list of
    backend parts.

    Raises:
        EmptyContentError: If there is no ``user`` message or it has no
            translatable part.
        InvalidArgumentError: If a media part cannot be encoded.
    """
    system_instruction = resolve_system_instruction(messages, config)

    active = last_user_message(messages)
    if active is None:
        raise EmptyContentError("conversation has no user message")

    dropped = sum(1 for m in messages if m.role != "system") - 1
    if dropped > 0:
        log.debug("Single-turn call: dropping %d earlier message(s)", dropped)

    sent = [(p, to_backend_part(p)) for p in active.content]
    sent = [(p, backend) for p, backend in sent if backend is not None]
    if not sent:
        raise EmptyContentError("last user message has no translatable parts")

    if len(sent) == 1 and isinstance(sent[0][0], TextPart):
        return TranslatedRequest(sent[0][0].text, system_instruction)
    return TranslatedRequest([backend for _, backend in sent], system_instruction)
