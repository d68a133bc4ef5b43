"""Session lookup that degrades to "unauthenticated" on infrastructure errors."""

from __future__ import annotations

from cellory_ops.auth.errors import classify_auth_error
from cellory_ops.auth.sessions import SessionRepository, SessionView
from cellory_ops.resilience.fallback import (
    PROCESS_FINGERPRINTS,
    ClassifiedFallbackWrapper,
    LoggedFingerprintSet,
)

SAFE_AUTH_NAME = "safe-auth"


def safe_session_lookup(
    repository: SessionRepository,
    token: str,
    *,
    diagnostics_enabled: bool,
    fingerprints: LoggedFingerprintSet = PROCESS_FINGERPRINTS,
) -> SessionView | None:
    """Return the session for ``token``, or None when it cannot be resolved.

    Recoverable database errors (unreachable server, missing tables) yield
    None; any other error propagates unchanged.
    """

    wrapper = ClassifiedFallbackWrapper(
        SAFE_AUTH_NAME,
        diagnostics_enabled=diagnostics_enabled,
        fingerprints=fingerprints,
    )
    return wrapper.guard(
        lambda: repository.get_session(token),
        classify_auth_error,
        lambda: None,
    )
