"""Guarded calls that absorb recoverable errors and log each signature once."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from cellory_ops.resilience.models import ClassificationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoggedFingerprintSet:
    """Append-only set of diagnostic keys already logged.

    Membership test and insertion happen under one lock, so concurrent first
    occurrences of the same key cannot both observe it as absent.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()
        self._lock = threading.Lock()

    def add_if_absent(self, key: str) -> bool:
        """Insert ``key``; return True only for the caller that inserted it."""

        with self._lock:
            if key in self._keys:
                return False
            self._keys.add(key)
            return True

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._keys

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


# Lives for the whole process; a restart resets it.
PROCESS_FINGERPRINTS = LoggedFingerprintSet()


class ClassifiedFallbackWrapper:
    """Run an operation, substituting a fallback for recoverable failures.

    Fatal errors (``recoverable=False``) are re-raised untouched. Recoverable
    ones return ``on_fallback()``; when diagnostics are enabled, one warning is
    emitted per distinct fingerprint for the lifetime of ``fingerprints``.
    Production deployments construct the wrapper with
    ``diagnostics_enabled=False`` and get the fallback without any logging.
    """

    def __init__(
        self,
        name: str,
        *,
        diagnostics_enabled: bool,
        fingerprints: LoggedFingerprintSet | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.diagnostics_enabled = diagnostics_enabled
        self.fingerprints = fingerprints if fingerprints is not None else PROCESS_FINGERPRINTS
        self._logger = log or logger

    def guard(
        self,
        operation: Callable[[], T],
        classify: Callable[[Exception], ClassificationResult],
        on_fallback: Callable[[], T],
    ) -> T:
        try:
            return operation()
        except Exception as error:
            classification = classify(error)
            if not classification.recoverable:
                raise
            self._report(classification)
            return on_fallback()

    def _report(self, classification: ClassificationResult) -> None:
        if not self.diagnostics_enabled:
            return
        key = f"{self.name}:{classification.fingerprint}"
        if self.fingerprints.add_if_absent(key):
            self._logger.warning(
                "[%s] recoverable classified error, treating as fallback (%s)",
                self.name,
                classification.fingerprint,
            )
