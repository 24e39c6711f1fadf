# tests/unit/config/test_settings.py
from __future__ import annotations

import pytest

from json_formatter.config import DEFAULT_MAX_LENGTH, Settings, get_settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.max_length == DEFAULT_MAX_LENGTH == 3_000_000
    assert settings.virtualization_threshold == 200
    assert settings.initial_window == 100
    assert settings.batch_size == 250
    assert settings.frame_budget_ms == 16.0
    assert settings.log_level == "INFO"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSON_FORMATTER_MAX_LENGTH", "1000")
    monkeypatch.setenv("JSON_FORMATTER_BATCH_SIZE", "10")
    monkeypatch.setenv("JSON_FORMATTER_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.max_length == 1000
    assert settings.batch_size == 10
    assert settings.log_level == "DEBUG"


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("JSON_FORMATTER_MAX_LENGTH", "0"),
        ("JSON_FORMATTER_INITIAL_WINDOW", "-1"),
        ("JSON_FORMATTER_FRAME_BUDGET_MS", "0"),
        ("JSON_FORMATTER_BATCH_SIZE", "lots"),
    ],
)
def test_invalid_configuration_raises_runtime_error(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(RuntimeError, match="Invalid configuration"):
        get_settings()


def test_unrelated_env_is_ignored(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JSON_FORMATTER_UNKNOWN", "1")
    assert get_settings().max_length == DEFAULT_MAX_LENGTH
