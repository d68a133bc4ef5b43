"""Blocking invocation of one external command as a retryable action."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

EXIT_ABNORMAL = 1
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


@dataclass(frozen=True, slots=True)
class ExternalCommand:
    """External step run with inherited stdio; calling it returns the exit status."""

    args: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_template(cls, template: str, env: Mapping[str, str] | None = None) -> ExternalCommand:
        args = tuple(shlex.split(template.strip()))
        if not args:
            raise ValueError("External command template is empty.")
        return cls(args=args, env=dict(env or {}))

    @property
    def display(self) -> str:
        return shlex.join(self.args)

    def __call__(self) -> int:
        env = os.environ.copy()
        env.update(self.env)
        try:
            completed = subprocess.run(list(self.args), env=env, check=False)
        except FileNotFoundError:
            logger.error("Command not found: %s", self.args[0])
            return EXIT_NOT_FOUND
        except PermissionError:
            logger.error("Command is not executable: %s", self.args[0])
            return EXIT_NOT_EXECUTABLE
        except OSError as error:
            logger.error("Command failed to start: %s (%s)", self.display, error)
            return EXIT_ABNORMAL
        return normalize_exit_status(completed.returncode)


def normalize_exit_status(returncode: int | None) -> int:
    """Map a subprocess return code to a process exit status.

    Signal terminations (negative codes) and a missing code count as a plain
    failure.
    """

    if returncode is None or returncode < 0:
        return EXIT_ABNORMAL
    return returncode
