import pytest

from encounterbuilder.backend.config import DIFFICULTY_XP, load_settings


def test_load_settings_reads_expected_env(monkeypatch) -> None:
    monkeypatch.setenv("ENCOUNTERBUILDER_SERVER_URL", "http://generator.local:3100/")
    monkeypatch.setenv("ENCOUNTERBUILDER_DEFAULT_DIFFICULTY", "Extreme")
    monkeypatch.setenv("ENCOUNTERBUILDER_DEFAULT_PARTY_SIZE", "5")
    monkeypatch.setenv("ENCOUNTERBUILDER_DATABASE_URL", "postgresql://local")
    monkeypatch.setenv("ENCOUNTERBUILDER_SESSION_PATH", "/tmp/session.json")
    monkeypatch.setenv("ENCOUNTERBUILDER_HOST", "localhost")
    monkeypatch.setenv("ENCOUNTERBUILDER_PORT", "9000")
    monkeypatch.setenv("ENCOUNTERBUILDER_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.server_url == "http://generator.local:3100"
    assert settings.default_difficulty == "extreme"
    assert settings.default_party_size == 5
    assert settings.database_url == "postgresql://local"
    assert settings.session_path == "/tmp/session.json"
    assert settings.host == "localhost"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"


def test_load_settings_applies_defaults(monkeypatch) -> None:
    for name in (
        "ENCOUNTERBUILDER_SERVER_URL",
        "ENCOUNTERBUILDER_DEFAULT_DIFFICULTY",
        "ENCOUNTERBUILDER_DEFAULT_PARTY_SIZE",
        "ENCOUNTERBUILDER_DATABASE_URL",
        "ENCOUNTERBUILDER_SESSION_PATH",
        "ENCOUNTERBUILDER_HOST",
        "ENCOUNTERBUILDER_PORT",
        "ENCOUNTERBUILDER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.server_url == "http://localhost:3000"
    assert settings.default_difficulty == "severe"
    assert settings.default_party_size == 4
    assert settings.database_url is None
    assert settings.session_path is None
    assert settings.host == "127.0.0.1"
    assert settings.port == 8000
    assert settings.log_level == "INFO"


def test_load_settings_rejects_unknown_difficulty(monkeypatch) -> None:
    monkeypatch.setenv("ENCOUNTERBUILDER_DEFAULT_DIFFICULTY", "deadly")

    with pytest.raises(ValueError):
        load_settings()


def test_difficulty_budgets_match_pathfinder_table() -> None:
    assert DIFFICULTY_XP["moderate"] == 80
    assert DIFFICULTY_XP["severe"] == 120
    assert DIFFICULTY_XP["extreme"] == 160
