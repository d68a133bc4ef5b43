"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from cellory_ops.resilience.fallback import LoggedFingerprintSet

_CELLORY_ENV_KEYS = (
    "CELLORY_DATABASE_URL",
    "CELLORY_ENV",
    "CELLORY_MIGRATE_MAX_ATTEMPTS",
    "CELLORY_MIGRATE_RETRY_DELAY_MS",
    "CELLORY_MIGRATE_COMMAND",
    "CELLORY_SESSION_MAX_AGE_SECONDS",
    "CELLORY_SESSION_UPDATE_AGE_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_cellory_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shell settings out of the tests."""
    for key in _CELLORY_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'cellory.db'}"


@pytest.fixture()
def fingerprints() -> LoggedFingerprintSet:
    return LoggedFingerprintSet()


class RecordingSleep:
    """Collects requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
