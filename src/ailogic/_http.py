"""Small HTTP-related constants shared across ailogic.

Imported by both the error taxonomy and the classifier.
"""

from __future__ import annotations

# Status codes a caller-side retry policy may reasonably retry.
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 409, 429, 500, 502, 503, 504})

INVALID_ARGUMENT_STATUS_CODES: frozenset[int] = frozenset({400})
PERMISSION_DENIED_STATUS_CODES: frozenset[int] = frozenset({401, 403})
RESOURCE_EXHAUSTED_STATUS_CODES: frozenset[int] = frozenset({429})
