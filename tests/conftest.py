"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, and automatic API
test skipping. All fixtures here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from ailogic.providers.base import BackendModelOptions

# =============================================================================
# Test Doubles
# =============================================================================


def text_response(
    text: str,
    *,
    finish_reason: str = "STOP",
    usage: dict[str, int] | None = None,
) -> dict[str, Any]:
    """Build a JSON-shaped single-candidate backend response."""
    return {
        "candidates": [
            {
                "index": 0,
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": finish_reason,
            }
        ],
        "usageMetadata": usage
        or {"promptTokenCount": 1, "candidatesTokenCount": 1, "totalTokenCount": 2},
    }


@dataclass
class FakeGenerativeModel:
    """Model handle double: records contents, returns or raises on demand."""

    options: BackendModelOptions
    backend: FakeBackendClient

    async def generate_content(self, contents: Any) -> Any:
        self.backend.calls.append((self.options, contents))
        if self.backend.error is not None:
            raise self.backend.error
        return self.backend.response


@dataclass
class FakeBackendClient:
    """Backend binding test double.

    Captures every model build and call so tests can assert on the exact
    options and contents sent, without network access.
    """

    response: Any = field(default_factory=lambda: text_response("ok"))
    error: BaseException | None = None
    backend: str = "fake"
    built: list[BackendModelOptions] = field(default_factory=list)
    calls: list[tuple[BackendModelOptions, Any]] = field(default_factory=list)

    def generative_model(self, options: BackendModelOptions) -> FakeGenerativeModel:
        self.built.append(options)
        return FakeGenerativeModel(options, self)

    @property
    def last_options(self) -> BackendModelOptions:
        return self.calls[-1][0]

    @property
    def last_contents(self) -> Any:
        return self.calls[-1][1]


@pytest.fixture
def fake_backend() -> FakeBackendClient:
    """A fresh recording backend (not autouse)."""
    return FakeBackendClient()


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean credential environment for each test.

    Clears GEMINI_* and GOOGLE_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith(("GEMINI_", "GOOGLE_")):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("google_genai").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)


# =============================================================================
# API Test Configuration
# =============================================================================

_GEMINI_TEST_MODEL = "gemini-2.0-flash"


@pytest.fixture
def gemini_api_key():
    """Return GEMINI_API_KEY or skip the test if unavailable."""
    key = os.getenv("GEMINI_API_KEY")
    if not key:
        pytest.skip("GEMINI_API_KEY not set")
    return key


@pytest.fixture
def gemini_test_model():
    """Return the bare model name to use for API tests."""
    return _GEMINI_TEST_MODEL
