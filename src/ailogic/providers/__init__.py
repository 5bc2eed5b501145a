"""Backend bindings and the request/response translation layer."""

from .backend import GenAIBackendClient, create_backend_client
from .base import BackendClient, BackendModelOptions, GenerativeModel
from .mock import MockBackendClient
from .normalize import normalize_response
from .translate import TranslatedRequest, translate_request

__all__ = [
    "BackendClient",
    "BackendModelOptions",
    "GenAIBackendClient",
    "GenerativeModel",
    "MockBackendClient",
    "TranslatedRequest",
    "create_backend_client",
    "normalize_response",
    "translate_request",
]
