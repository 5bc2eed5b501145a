"""Translation layer characterization tests.

These tests pin the exact shapes sent to and accepted from the backend SDK
without making network calls. Backend formats are consumed externally and
drift is hard to detect, so the shapes are asserted field by field.
"""

from __future__ import annotations

import base64
from types import SimpleNamespace
from typing import Any

from google.genai import types as genai_types
import pytest

from ailogic.errors import EmptyContentError, InvalidArgumentError
from ailogic.generation_config import GenerationConfig
from ailogic.providers.normalize import (
    has_candidates,
    has_nested_response,
    has_text_accessor,
    normalize_finish_reason,
    normalize_response,
    select_payload,
)
from ailogic.providers.translate import decode_data_uri, translate_request
from ailogic.types import (
    MediaPart,
    Message,
    TextPart,
    ToolRequestPart,
    ToolResponsePart,
)

pytestmark = pytest.mark.contract


def _user(*content: Any) -> Message:
    return Message("user", content)


# =============================================================================
# Request translation: system instruction
# =============================================================================


def test_system_message_and_single_text_turn() -> None:
    """[system 'Be terse.', user '2+2?'] -> bare string plus the system text."""
    messages = [Message("system", ["Be terse."]), _user("2+2?")]

    translated = translate_request(messages, GenerationConfig())

    assert translated.contents == "2+2?"
    assert translated.system_instruction == "Be terse."


def test_config_system_instruction_wins_over_system_message() -> None:
    messages = [Message("system", ["from message"]), _user("hi")]
    config = GenerationConfig(system_instruction="from config")

    translated = translate_request(messages, config)

    assert translated.system_instruction == "from config"


def test_structured_config_system_instruction_is_kept_as_given() -> None:
    config = GenerationConfig.model_validate(
        {"systemInstruction": {"role": "system", "parts": [{"text": "Be kind."}]}}
    )
    translated = translate_request([_user("hi")], config)

    assert translated.system_instruction is config.system_instruction
    assert translated.system_instruction.text == "Be kind."


def test_first_system_message_is_used() -> None:
    messages = [
        Message("system", ["first"]),
        Message("system", ["second"]),
        _user("hi"),
    ]
    assert translate_request(messages).system_instruction == "first"


def test_no_system_instruction_anywhere() -> None:
    assert translate_request([_user("hi")]).system_instruction is None


# =============================================================================
# Request translation: single-turn reduction
# =============================================================================


def test_only_last_user_message_is_sent() -> None:
    messages = [
        _user("first question"),
        Message("model", ["first answer"]),
        _user("second question"),
        Message("model", ["second answer"]),
        _user("third question", "with detail"),
    ]

    translated = translate_request(messages)

    assert isinstance(translated.contents, list)
    assert [p.text for p in translated.contents] == ["third question", "with detail"]


def test_model_turn_after_last_user_is_dropped() -> None:
    messages = [_user("question"), Message("model", ["answer"])]
    assert translate_request(messages).contents == "question"


def test_no_user_message_raises_empty_content() -> None:
    messages = [Message("system", ["sys"]), Message("model", ["hello"])]
    with pytest.raises(EmptyContentError):
        translate_request(messages)


def test_user_message_without_parts_raises_empty_content() -> None:
    with pytest.raises(EmptyContentError):
        translate_request([_user()])


def test_empty_conversation_raises_empty_content() -> None:
    with pytest.raises(EmptyContentError):
        translate_request([])


@pytest.mark.parametrize("content", [[""], ["", ""], [TextPart("")]])
def test_user_turn_of_empty_text_raises_empty_content(content: list) -> None:
    """An empty text turn is never sent as an empty call."""
    with pytest.raises(EmptyContentError):
        translate_request([_user(*content)])


def test_empty_text_parts_are_skipped_before_collapsing() -> None:
    """['', 'hi', ''] reduces to the bare string 'hi'."""
    assert translate_request([_user("", "hi", "")]).contents == "hi"


# =============================================================================
# Request translation: part flattening
# =============================================================================


def test_data_uri_becomes_inline_bytes() -> None:
    payload = b"\x89PNG\r\n"
    url = "data:image/png;base64," + base64.b64encode(payload).decode()

    translated = translate_request([_user("describe", MediaPart(url))])

    text_part, media_part = translated.contents
    assert text_part.text == "describe"
    assert media_part.inline_data.mime_type == "image/png"
    assert media_part.inline_data.data == payload
    assert media_part.file_data is None


def test_remote_uri_becomes_file_reference_with_declared_type() -> None:
    media = MediaPart("gs://bucket/clip.bin", content_type="video/mp4")

    translated = translate_request([_user(media)])

    (part,) = translated.contents
    assert isinstance(part, genai_types.Part)
    assert part.file_data.file_uri == "gs://bucket/clip.bin"
    assert part.file_data.mime_type == "video/mp4"
    assert part.inline_data is None


def test_remote_uri_content_type_is_guessed_from_extension() -> None:
    translated = translate_request([_user(MediaPart("gs://bucket/doc.pdf"))])
    assert translated.contents[0].file_data.mime_type == "application/pdf"


def test_remote_uri_without_resolvable_type_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        translate_request([_user(MediaPart("gs://bucket/blob"))])


def test_unsupported_media_scheme_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        translate_request([_user(MediaPart("ftp://host/file.png"))])


def test_single_media_part_is_not_collapsed_to_string() -> None:
    url = "data:text/plain;base64," + base64.b64encode(b"hi").decode()
    translated = translate_request([_user(MediaPart(url))])
    assert isinstance(translated.contents, list)
    assert len(translated.contents) == 1


def test_tool_parts_pass_through_structurally() -> None:
    messages = [
        _user(
            ToolRequestPart("get_weather", {"city": "Paris"}),
            ToolResponsePart("get_weather", {"temp_c": 21, "sky": "clear"}),
        )
    ]

    call, response = translate_request(messages).contents

    assert call.function_call.name == "get_weather"
    assert call.function_call.args == {"city": "Paris"}
    assert response.function_response.name == "get_weather"
    assert response.function_response.response == {"temp_c": 21, "sky": "clear"}


def test_non_object_tool_output_is_wrapped() -> None:
    (part,) = translate_request([_user(ToolResponsePart("count", 3))]).contents
    assert part.function_response.response == {"result": 3}


def test_non_object_tool_input_is_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        translate_request([_user(ToolRequestPart("count", [1, 2]))])


@pytest.mark.parametrize(
    ("url", "mime", "data"),
    [
        ("data:text/plain;base64,aGk=", "text/plain", b"hi"),
        ("data:text/plain,hello%20world", "text/plain", b"hello world"),
        ("data:image/jpeg;charset=x;base64,AA==", "image/jpeg", b"\x00"),
    ],
)
def test_decode_data_uri_variants(url: str, mime: str, data: bytes) -> None:
    assert decode_data_uri(url) == (mime, data)


@pytest.mark.parametrize(
    "url",
    [
        "data:image/png;base64",  # no comma
        "data:;base64,aGk=",  # no MIME type
        "data:image/png;base64,not base64!!",
    ],
)
def test_decode_data_uri_rejects_malformed(url: str) -> None:
    with pytest.raises(InvalidArgumentError):
        decode_data_uri(url)


# =============================================================================
# Response normalization: shape probes
# =============================================================================


def test_shape_probes_are_ordered() -> None:
    nested = SimpleNamespace(response=SimpleNamespace(text=lambda: "inner"))
    top = SimpleNamespace(text=lambda: "outer", candidates=[])
    bare = {"candidates": [{"content": {"parts": [{"text": "x"}]}}]}

    assert has_nested_response(nested)
    assert select_payload(nested)[0] == "nested_response"
    assert has_text_accessor(top)
    assert select_payload(top)[0] == "text_accessor"
    assert not has_text_accessor(bare)
    assert has_candidates(bare)
    assert select_payload(bare)[0] == "candidates"
    assert select_payload(object()) is None


def test_text_accessor_only_response() -> None:
    """A raw value exposing only text() and usage normalizes to one stop candidate."""
    raw = SimpleNamespace(
        text=lambda: "4",
        usageMetadata={
            "promptTokenCount": 3,
            "candidatesTokenCount": 1,
            "totalTokenCount": 4,
        },
    )

    result = normalize_response(raw)

    assert len(result.candidates) == 1
    candidate = result.candidates[0]
    assert candidate.text == "4"
    assert candidate.finish_reason == "stop"
    assert candidate.role == "model"
    assert (
        result.usage.input_tokens,
        result.usage.output_tokens,
        result.usage.total_tokens,
    ) == (3, 1, 4)


def test_nested_response_is_unwrapped() -> None:
    inner = SimpleNamespace(
        text=lambda: "hello",
        usage_metadata=SimpleNamespace(
            prompt_token_count=5, candidates_token_count=2, total_token_count=7
        ),
    )
    result = normalize_response(SimpleNamespace(response=inner))

    assert result.text == "hello"
    assert result.usage.total_tokens == 7


def test_raw_candidates_array_with_metadata() -> None:
    safety = [{"category": "HARM_CATEGORY_HARASSMENT", "probability": "NEGLIGIBLE"}]
    citations = {"citations": [{"uri": "https://example.com"}]}
    raw = {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [
                        {"text": "Calling a tool."},
                        {"functionCall": {"name": "lookup", "args": {"q": "x"}}},
                    ],
                },
                "finishReason": "MAX_TOKENS",
                "safetyRatings": safety,
                "citationMetadata": citations,
            },
            {
                "content": {"parts": [{"text": "Blocked"}]},
                "finishReason": "SAFETY",
            },
        ],
        "promptFeedback": {"blockReason": None},
    }

    result = normalize_response(raw)

    first, second = result.candidates
    assert first.index == 0
    assert first.finish_reason == "length"
    assert first.content == (
        TextPart("Calling a tool."),
        ToolRequestPart("lookup", {"q": "x"}),
    )
    assert first.metadata["safetyRatings"] is safety
    assert first.metadata["citationMetadata"] is citations
    assert "groundingMetadata" not in first.metadata
    assert second.index == 1
    assert second.finish_reason == "safety"
    assert result.metadata["promptFeedback"] == {"blockReason": None}
    assert result.usage.total_tokens == 0


def test_function_response_part_is_inverted() -> None:
    raw = {
        "candidates": [
            {
                "content": {
                    "parts": [
                        {"functionResponse": {"name": "f", "response": {"ok": True}}}
                    ]
                },
                "finishReason": "STOP",
            }
        ]
    }
    (candidate,) = normalize_response(raw).candidates
    assert candidate.content == (ToolResponsePart("f", {"ok": True}),)


def test_sdk_response_object_round_trip() -> None:
    """A real google-genai response object keeps candidate metadata."""
    response = genai_types.GenerateContentResponse(
        candidates=[
            genai_types.Candidate(
                content=genai_types.Content(
                    role="model", parts=[genai_types.Part(text="Paris")]
                ),
                finish_reason=genai_types.FinishReason.STOP,
                index=0,
            )
        ],
        usage_metadata=genai_types.GenerateContentResponseUsageMetadata(
            prompt_token_count=6, candidates_token_count=1, total_token_count=7
        ),
    )

    result = normalize_response(response)

    assert result.text == "Paris"
    assert result.candidates[0].finish_reason == "stop"
    assert result.usage.input_tokens == 6


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("STOP", "stop"),
        ("stop", "stop"),
        ("MAX_TOKENS", "length"),
        ("max_tokens", "length"),
        ("SAFETY", "safety"),
        ("RECITATION", "other"),
        (None, "other"),
        (genai_types.FinishReason.MAX_TOKENS, "length"),
    ],
)
def test_finish_reason_mapping(token: Any, expected: str) -> None:
    assert normalize_finish_reason(token) == expected


def test_missing_usage_defaults_to_zero() -> None:
    result = normalize_response({"text": "hi", "usageMetadata": {"totalTokenCount": 9}})
    assert result.usage.input_tokens == 0
    assert result.usage.output_tokens == 0
    assert result.usage.total_tokens == 9


def test_empty_text_yields_no_candidates() -> None:
    result = normalize_response(SimpleNamespace(text=lambda: ""))
    assert result.candidates == ()


# =============================================================================
# Response normalization: degraded results
# =============================================================================


def test_unrecognised_shape_degrades_without_raising() -> None:
    result = normalize_response(42)

    (candidate,) = result.candidates
    assert candidate.finish_reason == "other"
    assert "unrecognised response shape" in candidate.text
    assert result.usage.total_tokens == 0


def test_none_response_degrades() -> None:
    result = normalize_response(None)
    assert result.candidates[0].finish_reason == "other"


def test_throwing_text_accessor_degrades() -> None:
    def _boom() -> str:
        raise RuntimeError("text unavailable")

    result = normalize_response(
        SimpleNamespace(text=_boom, usageMetadata={"totalTokenCount": 12})
    )

    (candidate,) = result.candidates
    assert candidate.finish_reason == "other"
    assert "text unavailable" in candidate.text
    assert result.usage.total_tokens == 0


def test_text_round_trip() -> None:
    """A single text turn goes out as the same string that comes back."""
    original = "Bonjour, le monde."
    sent = translate_request([_user(original)]).contents

    result = normalize_response(
        {
            "candidates": [
                {"content": {"parts": [{"text": sent}]}, "finishReason": "STOP"}
            ]
        }
    )

    assert result.text == original
