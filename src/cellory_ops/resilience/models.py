"""Value types shared by the retry supervisor and the fallback wrapper."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Retry budget for one supervised invocation."""

    max_attempts: int
    base_delay: timedelta

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts!r}.")
        if self.base_delay < timedelta(0):
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay!r}.")
        if self.max_attempts > 1 and self.base_delay == timedelta(0):
            raise ValueError("base_delay must be > 0 when max_attempts > 1.")

    @classmethod
    def from_milliseconds(cls, *, max_attempts: int, base_delay_ms: int) -> RetryConfig:
        return cls(max_attempts=max_attempts, base_delay=timedelta(milliseconds=base_delay_ms))

    def delay_for(self, attempt: int) -> timedelta:
        """Linear backoff: one base unit per attempt already made."""

        return self.base_delay * attempt


@dataclass(frozen=True, slots=True)
class AttemptOutcome:
    """Exit status observed for one attempt."""

    attempt: int
    exit_status: int

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Classifier verdict for one error value.

    ``fingerprint`` is only a dedup key for diagnostics; it carries no meaning
    beyond being stable for the same error shape.
    """

    recoverable: bool
    fingerprint: str
