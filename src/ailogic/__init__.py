"""ailogic: a provider-agnostic generation adapter over google-genai.

Public API:
    - AILogicPlugin: lazy model lookup and generation entry point
    - PluginConfig: backend selection, credentials and defaults
    - GenerateRequest / Message / parts: canonical request shape
    - CanonicalResponse / Candidate / UsageStats: canonical response shape
    - GenerationConfig / merge_config: validated generation options
"""

from __future__ import annotations

import logging

from ailogic.config import PluginConfig
from ailogic.errors import (
    AILogicError,
    BackendError,
    ConfigValidationError,
    EmptyContentError,
    ErrorKind,
    InternalError,
    InvalidArgumentError,
    PermissionDeniedError,
    ResourceExhaustedError,
    UnsupportedModelError,
)
from ailogic.generation_config import GenerationConfig, SafetySetting, merge_config
from ailogic.models import (
    PROVIDER_PREFIX,
    ModelCapabilities,
    ModelCatalog,
    ModelDescriptor,
    canonical_name,
    internal_name,
)
from ailogic.plugin import AILogicPlugin, ModelReference
from ailogic.resolver import ModelHandle, ModelResolver
from ailogic.types import (
    CanonicalResponse,
    Candidate,
    GenerateRequest,
    MediaPart,
    Message,
    TextPart,
    ToolRequestPart,
    ToolResponsePart,
    UsageStats,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("ailogic-genai")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("ailogic").addHandler(logging.NullHandler())

__all__ = [
    "PROVIDER_PREFIX",
    "AILogicError",
    "AILogicPlugin",
    "BackendError",
    "CanonicalResponse",
    "Candidate",
    "ConfigValidationError",
    "EmptyContentError",
    "ErrorKind",
    "GenerateRequest",
    "GenerationConfig",
    "InternalError",
    "InvalidArgumentError",
    "MediaPart",
    "Message",
    "ModelCapabilities",
    "ModelCatalog",
    "ModelDescriptor",
    "ModelHandle",
    "ModelReference",
    "ModelResolver",
    "PermissionDeniedError",
    "PluginConfig",
    "ResourceExhaustedError",
    "SafetySetting",
    "TextPart",
    "ToolRequestPart",
    "ToolResponsePart",
    "UnsupportedModelError",
    "UsageStats",
    "canonical_name",
    "internal_name",
    "merge_config",
]
