"""Exception hierarchy for ailogic."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

DEFAULT_COMPONENT = "firebase-ai-logic-plugin"


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced to callers."""

    CONFIG_VALIDATION = "CONFIG_VALIDATION"
    EMPTY_CONTENT = "EMPTY_CONTENT"
    UNSUPPORTED_MODEL = "UNSUPPORTED_MODEL"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"
    INTERNAL = "INTERNAL"


class AILogicError(Exception):
    """Base exception for all ailogic errors.

    ``kind`` is the precise taxonomy entry; ``status`` is the coarse status a
    host framework reports (validation kinds all collapse to
    ``INVALID_ARGUMENT``). ``original_message`` is kept verbatim.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    status: ErrorKind = ErrorKind.INTERNAL
    prefix: str = "Internal error"

    def __init__(
        self,
        message: str,
        *,
        component: str = DEFAULT_COMPONENT,
        hint: str | None = None,
    ) -> None:
        super().__init__(f"{self.prefix}: {message}" if message else self.prefix)
        self.original_message = message
        self.component = component
        self.hint = hint


class InternalError(AILogicError):
    """Unclassified backend failure or an ailogic bug."""


class InvalidArgumentError(AILogicError):
    """The request was malformed."""

    kind = ErrorKind.INVALID_ARGUMENT
    status = ErrorKind.INVALID_ARGUMENT
    prefix = "Invalid request"


class ConfigValidationError(InvalidArgumentError):
    """A configuration field is missing, unknown, or out of range."""

    kind = ErrorKind.CONFIG_VALIDATION
    prefix = "Invalid config"


class EmptyContentError(InvalidArgumentError):
    """Nothing translatable would be sent to the backend."""

    kind = ErrorKind.EMPTY_CONTENT
    prefix = "Empty content"


class UnsupportedModelError(InvalidArgumentError):
    """The model name is outside the recognised catalog."""

    kind = ErrorKind.UNSUPPORTED_MODEL
    prefix = "Unsupported model"


class BackendError(AILogicError):
    """A classified failure of the backend call.

    Carries retry metadata so callers can apply their own retry policy;
    nothing in ailogic retries.
    """

    def __init__(
        self,
        message: str,
        *,
        component: str = DEFAULT_COMPONENT,
        hint: str | None = None,
        retryable: bool | None = None,
        status_code: int | None = None,
        retry_after_s: float | None = None,
    ) -> None:
        super().__init__(message, component=component, hint=hint)
        self.retryable = retryable
        self.status_code = status_code
        self.retry_after_s = retry_after_s


class BackendInvalidArgumentError(BackendError, InvalidArgumentError):
    """The backend rejected the request as malformed."""


class PermissionDeniedError(BackendError):
    """Authentication or authorization failed."""

    kind = ErrorKind.PERMISSION_DENIED
    status = ErrorKind.PERMISSION_DENIED
    prefix = "Permission denied"


class ResourceExhaustedError(BackendError):
    """Quota or rate limit exceeded."""

    kind = ErrorKind.RESOURCE_EXHAUSTED
    status = ErrorKind.RESOURCE_EXHAUSTED
    prefix = "Quota exceeded"


class BackendInternalError(BackendError, InternalError):
    """Backend failure that matched no other kind."""

    prefix = "Firebase AI Logic generation failed"


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
