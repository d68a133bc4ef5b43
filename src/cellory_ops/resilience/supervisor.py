"""Sequential retry-with-linear-backoff supervision of an external step."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import timedelta

from cellory_ops.resilience.models import AttemptOutcome, RetryConfig

logger = logging.getLogger(__name__)

_MILLISECOND = timedelta(milliseconds=1)


class RetrySupervisor:
    """Invoke an action until it exits 0 or the attempt budget runs out.

    The action returns an integer exit status (0 means success). Attempts run
    strictly one after another in the calling thread; the action may not be
    safe to apply twice concurrently.
    """

    def __init__(
        self,
        *,
        label: str = "retry",
        sleep: Callable[[float], None] = time.sleep,
        on_attempt: Callable[[AttemptOutcome], None] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.label = label
        self._sleep = sleep
        self._on_attempt = on_attempt
        self._logger = log or logger

    def run(self, action: Callable[[], int], config: RetryConfig) -> int:
        """Return 0 on the first successful attempt, else the last failure status."""

        exit_status = 1
        for attempt in range(1, config.max_attempts + 1):
            outcome = AttemptOutcome(attempt=attempt, exit_status=action())
            if self._on_attempt is not None:
                self._on_attempt(outcome)

            exit_status = outcome.exit_status
            if outcome.succeeded:
                return exit_status
            if attempt == config.max_attempts:
                return exit_status

            delay = config.delay_for(attempt)
            self._logger.warning(
                "[%s] Attempt %d/%d failed (exit status %d). Retrying in %dms...",
                self.label,
                attempt,
                config.max_attempts,
                exit_status,
                delay // _MILLISECOND,
            )
            self._sleep(delay.total_seconds())
        return exit_status
