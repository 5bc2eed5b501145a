"""Mock backend for running without API calls."""

from __future__ import annotations

from typing import Any

from ailogic.providers.base import BackendModelOptions


class MockGenerativeModel:
    """Returns a deterministic JSON-shaped ``candidates`` response.

    Echoes the call's text content so offline runs stay informative.
    """

    def __init__(self, options: BackendModelOptions) -> None:
        self.options = options

    async def generate_content(self, contents: Any) -> dict[str, Any]:
        if isinstance(contents, str):
            text = contents
        else:
            text = " ".join(
                t for t in (getattr(p, "text", None) for p in contents) if t
            )
        reply = f"echo: {text[:100]}"
        prompt_tokens = len(text.split())
        output_tokens = len(reply.split())
        return {
            "candidates": [
                {
                    "index": 0,
                    "content": {"role": "model", "parts": [{"text": reply}]},
                    "finishReason": "STOP",
                }
            ],
            "usageMetadata": {
                "promptTokenCount": prompt_tokens,
                "candidatesTokenCount": output_tokens,
                "totalTokenCount": prompt_tokens + output_tokens,
            },
        }


class MockBackendClient:
    """Backend binding that never touches the network."""

    @property
    def backend(self) -> str:
        return "mock"

    def generative_model(self, options: BackendModelOptions) -> MockGenerativeModel:
        return MockGenerativeModel(options)
