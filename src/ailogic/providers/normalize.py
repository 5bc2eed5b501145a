"""Backend raw response -> ``CanonicalResponse``.

The backend hands back several shapes: an object wrapping a nested
``response``, an object with a text accessor, or a bare ``candidates`` array.
Both SDK objects (snake_case attributes) and JSON mappings (camelCase keys)
occur. The shape is chosen by an ordered chain of named probes; the first
match wins.

Normalization never raises. A payload that matches no shape, or whose text
accessor throws, becomes a single ``other`` candidate carrying the failure
message so the caller still receives exactly one response.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import logging
from typing import Any

from ailogic.types import (
    CanonicalResponse,
    Candidate,
    FinishReason,
    Part,
    TextPart,
    ToolRequestPart,
    ToolResponsePart,
    UsageStats,
)

log = logging.getLogger(__name__)

_MISSING = object()

_FINISH_REASONS: dict[str, FinishReason] = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "LENGTH": "length",
    "SAFETY": "safety",
}

# Canonical metadata key -> (snake_case attr, camelCase key)
_CANDIDATE_METADATA: dict[str, tuple[str, str]] = {
    "safetyRatings": ("safety_ratings", "safetyRatings"),
    "citationMetadata": ("citation_metadata", "citationMetadata"),
    "groundingMetadata": ("grounding_metadata", "groundingMetadata"),
}


def _get(obj: Any, *names: str) -> Any:
    """Return the first non-None attribute or mapping key among *names*."""
    for name in names:
        if isinstance(obj, Mapping):
            value = obj.get(name)
        else:
            value = getattr(obj, name, None)
        if value is not None:
            return value
    return None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _raw_text(obj: Any) -> Any:
    # May raise: SDK objects compute ``text`` from their candidates.
    if isinstance(obj, Mapping):
        return obj.get("text", _MISSING)
    return getattr(obj, "text", _MISSING)


# --- Shape probes -------------------------------------------------------------


def has_text_accessor(obj: Any) -> bool:
    """True when *obj* exposes ``text`` as a zero-argument callable or a string.

    An accessor that raises while being looked up still counts; the failure
    surfaces when the text is read.
    """
    if obj is None:
        return False
    try:
        value = _raw_text(obj)
    except Exception:
        return True
    return callable(value) or isinstance(value, str)


def has_nested_response(raw: Any) -> bool:
    """True when *raw* wraps a ``response`` that exposes a text accessor."""
    return has_text_accessor(_get(raw, "response"))


def has_candidates(raw: Any) -> bool:
    """True when *raw* carries a ``candidates`` array directly."""
    return _is_sequence(_get(raw, "candidates"))


ShapeProbe = tuple[str, Callable[[Any], bool], Callable[[Any], Any]]

SHAPE_PROBES: tuple[ShapeProbe, ...] = (
    ("nested_response", has_nested_response, lambda raw: _get(raw, "response")),
    ("text_accessor", has_text_accessor, lambda raw: raw),
    ("candidates", has_candidates, lambda raw: raw),
)


def select_payload(raw: Any) -> tuple[str, Any] | None:
    """Return ``(shape_name, payload)`` for the first matching probe."""
    for name, probe, extract in SHAPE_PROBES:
        if probe(raw):
            return name, extract(raw)
    return None


# --- Field mapping ------------------------------------------------------------


def read_text(obj: Any) -> str:
    """Read text through the accessor; callables are invoked with no arguments."""
    value = _raw_text(obj)
    if callable(value):
        value = value()
    if value is None or value is _MISSING:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"text accessor returned {type(value).__name__}, not str")
    return value


def normalize_finish_reason(token: Any) -> FinishReason:
    """Map a backend finish-reason token (string or SDK enum) onto the canonical set."""
    if token is None:
        return "other"
    value = getattr(token, "value", token)
    if not isinstance(value, str):
        return "other"
    return _FINISH_REASONS.get(value.upper(), "other")


def from_backend_part(part: Any) -> Part | None:
    """Invert request part translation; ``None`` for kinds with no canonical form."""
    function_call = _get(part, "function_call", "functionCall")
    if function_call is not None:
        return ToolRequestPart(
            name=_get(function_call, "name") or "",
            input=_get(function_call, "args"),
        )
    function_response = _get(part, "function_response", "functionResponse")
    if function_response is not None:
        return ToolResponsePart(
            name=_get(function_response, "name") or "",
            output=_get(function_response, "response"),
        )
    text = _get(part, "text")
    if isinstance(text, str):
        return TextPart(text)
    return None


def _count(usage: Any, snake: str, camel: str) -> int:
    value = _get(usage, snake, camel)
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def usage_from(payload: Any) -> UsageStats:
    usage = _get(payload, "usage_metadata", "usageMetadata")
    if usage is None:
        return UsageStats()
    return UsageStats(
        input_tokens=_count(usage, "prompt_token_count", "promptTokenCount"),
        output_tokens=_count(usage, "candidates_token_count", "candidatesTokenCount"),
        total_tokens=_count(usage, "total_token_count", "totalTokenCount"),
    )


def candidate_from(position: int, raw_candidate: Any) -> Candidate:
    index = _get(raw_candidate, "index")
    if not isinstance(index, int) or isinstance(index, bool):
        index = position

    content = _get(raw_candidate, "content")
    raw_parts = _get(content, "parts") if content is not None else None
    parts = tuple(
        p
        for p in (from_backend_part(rp) for rp in (raw_parts or ()))
        if p is not None
    )

    metadata = {}
    for key, (snake, camel) in _CANDIDATE_METADATA.items():
        value = _get(raw_candidate, snake, camel)
        if value is not None:
            metadata[key] = value

    return Candidate(
        index=index,
        content=parts,
        finish_reason=normalize_finish_reason(
            _get(raw_candidate, "finish_reason", "finishReason")
        ),
        metadata=metadata,
    )


def degraded_response(reason: str) -> CanonicalResponse:
    """Single ``other`` candidate carrying *reason*, with zeroed usage."""
    return CanonicalResponse(
        candidates=(
            Candidate(
                index=0,
                content=(TextPart(reason),),
                finish_reason="other",
            ),
        ),
        usage=UsageStats(),
    )


def _normalize(raw: Any) -> CanonicalResponse:
    selected = select_payload(raw)
    if selected is None:
        raise ValueError(f"unrecognised response shape ({type(raw).__name__})")
    shape, payload = selected
    log.debug("Normalizing backend response via %s shape", shape)

    raw_candidates = _get(payload, "candidates")
    if _is_sequence(raw_candidates) and raw_candidates:
        candidates = tuple(
            candidate_from(i, c) for i, c in enumerate(raw_candidates)
        )
    else:
        text = read_text(payload) if has_text_accessor(payload) else ""
        candidates = (
            (Candidate(index=0, content=(TextPart(text),), finish_reason="stop"),)
            if text
            else ()
        )

    metadata = {}
    prompt_feedback = _get(payload, "prompt_feedback", "promptFeedback")
    if prompt_feedback is not None:
        metadata["promptFeedback"] = prompt_feedback

    return CanonicalResponse(
        candidates=candidates, usage=usage_from(payload), metadata=metadata
    )


def normalize_response(raw: Any) -> CanonicalResponse:
    """Normalize any observed backend response shape; never raises."""
    try:
        return _normalize(raw)
    except Exception as e:
        log.warning("Degraded backend response: %s", e)
        return degraded_response(f"Failed to normalize backend response: {e}")
