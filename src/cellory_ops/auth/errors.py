"""Deterministic classification of session-lookup failures.

Recoverable errors are infrastructure problems (database unreachable, schema
not migrated yet) that a request can survive by treating the caller as
unauthenticated. Everything else is fatal and must propagate.
"""

from __future__ import annotations

from cellory_ops.resilience.models import ClassificationResult

MAX_CAUSE_DEPTH = 4

# e3q8: SQLAlchemy OperationalError; 42P01: undefined_table;
# 08001 / 08006: PostgreSQL connection failures.
_RECOVERABLE_ERROR_CODES: frozenset[str] = frozenset({"e3q8", "42P01", "08001", "08006"})

_RECOVERABLE_MESSAGE_PATTERNS: tuple[str, ...] = (
    "adaptererror",
    "can't reach database server",
    "cannot reach database server",
    "does not exist in the current database",
    "no such table",
    "failed to fetch",
    "unable to open database file",
    "connection",
)


def auth_error_code(error: object) -> str | None:
    for attribute in ("code", "pgcode"):
        value = getattr(error, attribute, None)
        if isinstance(value, str) and value:
            return value
    return None


def auth_error_message(error: object) -> str:
    # DBAPIError text embeds the SQL and bound parameters (session tokens).
    orig = getattr(error, "orig", None)
    if isinstance(orig, BaseException):
        return str(orig)
    if isinstance(error, BaseException):
        return str(error)
    value = getattr(error, "message", None)
    return value if isinstance(value, str) else ""


def auth_error_fingerprint(error: object) -> str:
    """Stable dedup key built from the error type, code and message."""

    code = auth_error_code(error) or "unknown"
    message = auth_error_message(error) or "no-message"
    return f"{type(error).__name__}:{code}:{message}"


def is_recoverable_auth_error(error: object, depth: int = 0) -> bool:
    if error is None or depth > MAX_CAUSE_DEPTH:
        return False

    if auth_error_code(error) in _RECOVERABLE_ERROR_CODES:
        return True

    message = auth_error_message(error).lower()
    if any(pattern in message for pattern in _RECOVERABLE_MESSAGE_PATTERNS):
        return True

    return is_recoverable_auth_error(_error_cause(error), depth + 1)


def classify_auth_error(error: object) -> ClassificationResult:
    return ClassificationResult(
        recoverable=is_recoverable_auth_error(error),
        fingerprint=auth_error_fingerprint(error),
    )


def _error_cause(error: object) -> object | None:
    cause = getattr(error, "__cause__", None)
    if cause is not None:
        return cause
    # SQLAlchemy DBAPIError keeps the driver exception on ``orig``.
    return getattr(error, "orig", None)
