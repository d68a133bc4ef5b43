from __future__ import annotations

import shlex
import sys

import allure
import pytest
from click.testing import CliRunner

import cellory_ops.main as main_module
from cellory_ops.auth.sessions import SessionRepository
from cellory_ops.main import cellory_ops
from cellory_ops.migrations.controllers import MigrationCliController

pytestmark = [
    allure.epic("Resilience"),
    allure.feature("CLI"),
]


def _python_command(code: str) -> str:
    return shlex.join([sys.executable, "-c", code])


@pytest.fixture()
def recorded_delays(monkeypatch: pytest.MonkeyPatch, recording_sleep):
    monkeypatch.setattr(
        main_module,
        "MIGRATION_CONTROLLER",
        MigrationCliController(sleep=recording_sleep),
    )
    return recording_sleep.calls


def test_migrate_deploy_exits_zero_on_success(recorded_delays) -> None:
    result = CliRunner().invoke(
        cellory_ops,
        ["migrate", "deploy", "--command", _python_command("pass")],
    )

    assert result.exit_code == 0, result.output
    assert "Migrations applied after 1 attempt(s)." in result.output
    assert recorded_delays == []


def test_migrate_deploy_propagates_last_failure_status(recorded_delays) -> None:
    result = CliRunner().invoke(
        cellory_ops,
        [
            "migrate",
            "deploy",
            "--max-attempts",
            "3",
            "--retry-delay-ms",
            "4000",
            "--command",
            _python_command("import sys; sys.exit(3)"),
        ],
    )

    assert result.exit_code == 3
    assert "failed after 3 attempt(s) with exit status 3" in result.output
    assert recorded_delays == [4.0, 8.0]


def test_migrate_deploy_reads_retry_budget_from_environment(
    monkeypatch: pytest.MonkeyPatch, recorded_delays
) -> None:
    monkeypatch.setenv("CELLORY_MIGRATE_MAX_ATTEMPTS", "2")
    monkeypatch.setenv("CELLORY_MIGRATE_RETRY_DELAY_MS", "1500")
    monkeypatch.setenv("CELLORY_MIGRATE_COMMAND", _python_command("import sys; sys.exit(5)"))

    result = CliRunner().invoke(cellory_ops, ["migrate", "deploy"])

    assert result.exit_code == 5
    assert recorded_delays == [1.5]


def test_migrate_deploy_runs_alembic_by_default(database_url: str, recorded_delays) -> None:
    result = CliRunner().invoke(
        cellory_ops,
        ["migrate", "deploy", "--database-url", database_url, "--max-attempts", "1"],
    )

    assert result.exit_code == 0, result.output
    repository = SessionRepository(database_url)
    try:
        assert repository.counts() == {"sessions": 0, "users": 0}
    finally:
        repository.close()


def test_session_show_prints_unauthenticated_when_schema_is_missing(database_url: str) -> None:
    result = CliRunner().invoke(
        cellory_ops,
        ["session", "show", "tok-1", "--database-url", database_url],
    )

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "unauthenticated"


def test_session_show_prints_session_details(database_url: str) -> None:
    repository = SessionRepository(database_url)
    repository.init_schema()
    user_id = repository.create_user("agent@example.com", "Agent Smith")
    token = repository.create_session(user_id)
    repository.close()

    result = CliRunner().invoke(
        cellory_ops,
        ["session", "show", token, "--database-url", database_url],
    )

    assert result.exit_code == 0, result.output
    assert f"user_id: {user_id}" in result.output
    assert "email: agent@example.com" in result.output


def test_db_check_reports_counts(database_url: str) -> None:
    repository = SessionRepository(database_url)
    repository.init_schema()
    repository.close()

    result = CliRunner().invoke(cellory_ops, ["db", "check", "--database-url", database_url])

    assert result.exit_code == 0, result.output
    assert "sessions table: 0 sessions" in result.output
    assert "Database connection is working." in result.output


def test_db_check_fails_with_hint_when_schema_is_missing(database_url: str) -> None:
    result = CliRunner().invoke(cellory_ops, ["db", "check", "--database-url", database_url])

    assert result.exit_code == 1
    assert "Database check failed" in result.output
    assert "not migrated yet" in result.output


@pytest.mark.parametrize("template", ["", "  "])
def test_migrate_deploy_rejects_empty_command(recorded_delays, template: str) -> None:
    result = CliRunner().invoke(cellory_ops, ["migrate", "deploy", "--command", template])

    assert result.exit_code == 2
    assert "--command" in result.output
    assert recorded_delays == []


def test_migrate_deploy_ignores_malformed_session_settings(
    monkeypatch: pytest.MonkeyPatch, recorded_delays
) -> None:
    monkeypatch.setenv("CELLORY_SESSION_MAX_AGE_SECONDS", "30d")

    result = CliRunner().invoke(
        cellory_ops,
        ["migrate", "deploy", "--max-attempts", "1", "--command", _python_command("pass")],
    )

    assert result.exit_code == 0, result.output
    assert "Migrations applied after 1 attempt(s)." in result.output


def test_db_check_falls_back_for_non_numeric_session_settings(
    monkeypatch: pytest.MonkeyPatch, database_url: str
) -> None:
    repository = SessionRepository(database_url)
    repository.init_schema()
    repository.close()
    monkeypatch.setenv("CELLORY_SESSION_UPDATE_AGE_SECONDS", "abc")

    result = CliRunner().invoke(cellory_ops, ["db", "check", "--database-url", database_url])

    assert result.exit_code == 0, result.output
    assert "Database connection is working." in result.output


def test_db_check_reports_invalid_session_settings_without_traceback(
    monkeypatch: pytest.MonkeyPatch, database_url: str
) -> None:
    monkeypatch.setenv("CELLORY_SESSION_MAX_AGE_SECONDS", "0")

    result = CliRunner().invoke(cellory_ops, ["db", "check", "--database-url", database_url])

    assert result.exit_code == 1
    assert "CELLORY_SESSION_MAX_AGE_SECONDS must be > 0." in result.output
    assert isinstance(result.exception, SystemExit)
