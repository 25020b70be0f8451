"""Unit tests for environment-driven settings."""

from src.config.settings import Settings


def test_defaults():
    settings = Settings()
    assert settings.typing_window_ms == 1000
    assert settings.typing_expiry_seconds == 1.25
    assert settings.slow_consumer_policy == "drop_oldest"


def test_env_override(monkeypatch):
    monkeypatch.setenv("TYPING_WINDOW_MS", "2000")
    monkeypatch.setenv("TYPING_MARGIN_MS", "0")
    monkeypatch.setenv("SLOW_CONSUMER_POLICY", "disconnect")

    settings = Settings()

    assert settings.typing_expiry_seconds == 2.0
    assert settings.slow_consumer_policy == "disconnect"
