"""Retry supervision and classified fallback wrapping.

Neither component knows about databases or processes: the supervisor runs
any zero-argument action that returns an exit status, and the fallback
wrapper guards any zero-argument operation with a caller-supplied classifier.
Concrete collaborators live in ``cellory_ops.migrations`` and
``cellory_ops.auth``.
"""

from cellory_ops.resilience.fallback import (
    PROCESS_FINGERPRINTS,
    ClassifiedFallbackWrapper,
    LoggedFingerprintSet,
)
from cellory_ops.resilience.models import AttemptOutcome, ClassificationResult, RetryConfig
from cellory_ops.resilience.supervisor import RetrySupervisor

__all__ = [
    "PROCESS_FINGERPRINTS",
    "AttemptOutcome",
    "ClassificationResult",
    "ClassifiedFallbackWrapper",
    "LoggedFingerprintSet",
    "RetryConfig",
    "RetrySupervisor",
]
