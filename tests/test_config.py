from __future__ import annotations

from datetime import timedelta

import allure
import pytest

from cellory_ops.config import MigrateSettings, SessionSettings, Settings

pytestmark = [
    allure.epic("Resilience"),
    allure.feature("Configuration"),
]


def test_from_env_uses_defaults_when_unset() -> None:
    settings = Settings.from_env()

    assert settings.database_url == "sqlite:///.cellory.db"
    assert settings.migrate.max_attempts == 5
    assert settings.migrate.retry_delay_ms == 4000
    assert settings.migrate.command is None
    assert settings.diagnostics_enabled is False


def test_from_env_parses_migrate_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CELLORY_MIGRATE_MAX_ATTEMPTS", "3")
    monkeypatch.setenv("CELLORY_MIGRATE_RETRY_DELAY_MS", "250")
    monkeypatch.setenv("CELLORY_MIGRATE_COMMAND", "  alembic upgrade head  ")

    settings = Settings.from_env()

    assert settings.migrate.max_attempts == 3
    assert settings.migrate.retry_delay_ms == 250
    assert settings.migrate.command == "alembic upgrade head"
    assert settings.migrate.retry_config().delay_for(2) == timedelta(milliseconds=500)


@pytest.mark.parametrize("raw", ["", "  ", "five", "4.5"])
def test_from_env_falls_back_to_defaults_for_non_numeric_values(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("CELLORY_MIGRATE_MAX_ATTEMPTS", raw)
    monkeypatch.setenv("CELLORY_MIGRATE_RETRY_DELAY_MS", raw)

    settings = Settings.from_env()

    assert settings.migrate.max_attempts == 5
    assert settings.migrate.retry_delay_ms == 4000


def test_from_env_clamps_out_of_range_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CELLORY_MIGRATE_MAX_ATTEMPTS", "-2")
    monkeypatch.setenv("CELLORY_MIGRATE_RETRY_DELAY_MS", "0")

    settings = Settings.from_env()

    assert settings.migrate.max_attempts == 1
    assert settings.migrate.retry_delay_ms == 4000


@pytest.mark.parametrize(
    ("environment", "enabled"),
    [("development", True), ("Development ", True), ("production", False), ("staging", False)],
)
def test_diagnostics_only_enabled_in_development(
    monkeypatch: pytest.MonkeyPatch, environment: str, enabled: bool
) -> None:
    monkeypatch.setenv("CELLORY_ENV", environment)
    assert Settings.from_env().diagnostics_enabled is enabled


def test_explicit_database_url_wins_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CELLORY_DATABASE_URL", "sqlite:///env.db")
    assert Settings.from_env().database_url == "sqlite:///env.db"
    assert Settings.from_env(database_url="sqlite:///cli.db").database_url == "sqlite:///cli.db"


def test_migrate_settings_build_retry_config() -> None:
    config = MigrateSettings(max_attempts=2, retry_delay_ms=10).retry_config()
    assert config.max_attempts == 2
    assert config.base_delay == timedelta(milliseconds=10)


def test_validate_for_sessions_rejects_non_positive_ages() -> None:
    with pytest.raises(ValueError, match="MAX_AGE_SECONDS"):
        Settings(session=SessionSettings(max_age_seconds=0)).validate_for_sessions()
    with pytest.raises(ValueError, match="UPDATE_AGE_SECONDS"):
        Settings(session=SessionSettings(update_age_seconds=-1)).validate_for_sessions()


def test_validate_for_sessions_rejects_update_age_longer_than_max_age() -> None:
    settings = Settings(session=SessionSettings(max_age_seconds=60, update_age_seconds=120))
    with pytest.raises(ValueError, match="must not exceed"):
        settings.validate_for_sessions()


@pytest.mark.parametrize("raw", ["30d", "abc", "1.5"])
def test_from_env_falls_back_to_default_session_ages(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("CELLORY_SESSION_MAX_AGE_SECONDS", raw)
    monkeypatch.setenv("CELLORY_SESSION_UPDATE_AGE_SECONDS", raw)

    settings = Settings.from_env()

    assert settings.session.max_age_seconds == 2_592_000
    assert settings.session.update_age_seconds == 86_400
    settings.validate_for_sessions()
