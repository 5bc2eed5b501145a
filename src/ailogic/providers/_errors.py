"""Backend failure classification.

Every failure of a backend call is mapped onto the closed error taxonomy in
``ailogic.errors``. Backend-supplied codes are matched exactly first. A fixed
set of message substrings applies only when the backend sent no code; an
unrecognised code is classified as internal.
Classification never retries; it attaches retry metadata for the caller.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

import httpx

from ailogic._http import (
    INVALID_ARGUMENT_STATUS_CODES,
    PERMISSION_DENIED_STATUS_CODES,
    RESOURCE_EXHAUSTED_STATUS_CODES,
    RETRYABLE_STATUS_CODES,
)
from ailogic.errors import (
    DEFAULT_COMPONENT,
    AILogicError,
    BackendError,
    BackendInternalError,
    BackendInvalidArgumentError,
    PermissionDeniedError,
    ResourceExhaustedError,
    _walk_exception_chain,
)

# Exact backend codes: Firebase-style kebab case and gRPC/Google API status names.
_CODE_CLASSES: dict[str, type[BackendError]] = {
    "invalid-argument": BackendInvalidArgumentError,
    "INVALID_ARGUMENT": BackendInvalidArgumentError,
    "permission-denied": PermissionDeniedError,
    "PERMISSION_DENIED": PermissionDeniedError,
    "unauthenticated": PermissionDeniedError,
    "UNAUTHENTICATED": PermissionDeniedError,
    "quota-exceeded": ResourceExhaustedError,
    "resource-exhausted": ResourceExhaustedError,
    "RESOURCE_EXHAUSTED": ResourceExhaustedError,
}

# Checked in order against the lowercased message when no code matched.
_MESSAGE_SUBSTRINGS: tuple[tuple[tuple[str, ...], type[BackendError]], ...] = (
    (
        (
            "quota",
            "rate limit",
            "resource exhausted",
            "resource_exhausted",
            "too many requests",
        ),
        ResourceExhaustedError,
    ),
    (
        (
            "permission denied",
            "permission_denied",
            "unauthenticated",
            "unauthorized",
            "forbidden",
            "api key not valid",
        ),
        PermissionDeniedError,
    ),
    (
        (
            "invalid argument",
            "invalid_argument",
            "invalid-argument",
            "bad request",
        ),
        BackendInvalidArgumentError,
    ),
)

_CODE_ATTRS = ("code", "status", "status_code")


def _class_for_code(value: Any) -> type[BackendError] | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return _CODE_CLASSES.get(value)
    if isinstance(value, int):
        if value in RESOURCE_EXHAUSTED_STATUS_CODES:
            return ResourceExhaustedError
        if value in PERMISSION_DENIED_STATUS_CODES:
            return PermissionDeniedError
        if value in INVALID_ARGUMENT_STATUS_CODES:
            return BackendInvalidArgumentError
    return None


def class_from_codes(exc: BaseException) -> type[BackendError] | None:
    """Match backend-supplied codes anywhere in the exception chain."""
    for e in _walk_exception_chain(exc):
        for attr in _CODE_ATTRS:
            cls = _class_for_code(getattr(e, attr, None))
            if cls is not None:
                return cls
    return None


def carries_code(exc: BaseException) -> bool:
    """True when any exception in the chain carries a code or status value."""
    return any(
        getattr(e, attr, None) is not None
        for e in _walk_exception_chain(exc)
        for attr in _CODE_ATTRS
    )


def class_from_message(message: str) -> type[BackendError] | None:
    """Match the fixed case-insensitive substrings against *message*."""
    lowered = message.lower()
    for needles, cls in _MESSAGE_SUBSTRINGS:
        if any(n in lowered for n in needles):
            return cls
    return None


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        for attr in ("status_code", "code", "status"):
            value = getattr(e, attr, None)
            if (
                isinstance(value, int)
                and not isinstance(value, bool)
                and 100 <= value <= 599
            ):
                return value
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)s$")
_RETRY_INFO_TYPE = "type.googleapis.com/google.rpc.RetryInfo"


def _retry_info_delay(exc: BaseException) -> float | None:
    """``retryDelay`` from a google.rpc ``RetryInfo`` entry in ``exc.details``.

    google-genai ``APIError`` keeps the decoded error body on ``.details``.
    """
    body = getattr(exc, "details", None)
    error = body.get("error") if isinstance(body, dict) else None
    entries = error.get("details") if isinstance(error, dict) else None
    for entry in entries if isinstance(entries, list) else ():
        if not isinstance(entry, dict) or entry.get("@type") != _RETRY_INFO_TYPE:
            continue
        m = _DURATION_RE.match(str(entry.get("retryDelay", "")))
        if m:
            return float(m.group(1))
    return None


def _retry_after_header(exc: BaseException) -> float | None:
    headers = getattr(getattr(exc, "response", None), "headers", None)
    if not hasattr(headers, "get"):
        return None
    raw = headers.get("Retry-After")
    if not isinstance(raw, str):
        return None
    try:
        seconds = float(raw)
    except ValueError:
        # HTTP-date form is not used by the Gemini endpoints.
        return None
    return seconds if seconds >= 0 else None


def extract_retry_after_s(exc: BaseException) -> float | None:
    """Backend-suggested delay in seconds, from the header or ``RetryInfo``."""
    for e in _walk_exception_chain(exc):
        delay = _retry_after_header(e)
        if delay is None:
            delay = _retry_info_delay(e)
        if delay is not None:
            return delay
    return None


def _is_transport_error(exc: BaseException) -> bool:
    return any(
        isinstance(e, (httpx.TimeoutException, httpx.RequestError, TimeoutError))
        for e in _walk_exception_chain(exc)
    )


def _auth_hint(cls: type[BackendError]) -> str | None:
    if cls is PermissionDeniedError:
        return (
            "Check credentials/permissions (try setting GEMINI_API_KEY, "
            "GOOGLE_CLOUD_PROJECT or PluginConfig.api_key)."
        )
    if cls is ResourceExhaustedError:
        return "Quota or rate limit hit; retry later with backoff."
    return None


def error_message(exc: BaseException) -> str:
    """Return the exception's own message text, unmodified."""
    text = str(exc)
    if text:
        return text
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return type(exc).__name__


def classify_error(
    exc: BaseException, *, component: str = DEFAULT_COMPONENT
) -> AILogicError:
    """Map a backend failure into the ailogic error taxonomy.

    Already-classified errors are returned unchanged. Cancellation is
    re-raised, never classified.
    """
    if isinstance(exc, asyncio.CancelledError):
        raise exc
    if isinstance(exc, AILogicError):
        return exc

    message = error_message(exc)
    cls = class_from_codes(exc)
    if cls is None:
        # Substrings only apply when the backend sent no code at all.
        cls = (
            BackendInternalError
            if carries_code(exc)
            else class_from_message(message) or BackendInternalError
        )

    status_code = extract_status_code(exc)
    retry_after_s = extract_retry_after_s(exc)
    retryable = (
        retry_after_s is not None
        or cls is ResourceExhaustedError
        or (status_code is not None and status_code in RETRYABLE_STATUS_CODES)
        or _is_transport_error(exc)
    )

    return cls(
        message,
        component=component,
        hint=_auth_hint(cls),
        retryable=retryable,
        status_code=status_code,
        retry_after_s=retry_after_s,
    )
