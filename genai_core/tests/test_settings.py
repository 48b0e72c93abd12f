import pytest
from pydantic import ValidationError

from genai_core.config.settings import GenAISettings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "AIzaSy-test-key-123")
    monkeypatch.setenv("API_VERSION", "v1")
    monkeypatch.setenv("HTTP_TIMEOUT", "5")

    cfg = GenAISettings()

    assert cfg.google_api_key == "AIzaSy-test-key-123"
    assert cfg.api_version == "v1"
    assert cfg.http_timeout == 5.0
    assert cfg.base_url == "https://generativelanguage.googleapis.com"


def test_settings_from_yaml(monkeypatch, tmp_path):
    config = tmp_path / "genai.yaml"
    config.write_text("default_model: gemini-1.5-pro\nlog_level: debug\n", encoding="utf-8")
    monkeypatch.setenv("GENAI_CONFIG_FILE", str(config))
    monkeypatch.delenv("DEFAULT_MODEL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    cfg = GenAISettings()

    assert cfg.default_model == "gemini-1.5-pro"
    assert cfg.log_level == "DEBUG"


def test_settings_rejects_short_key():
    with pytest.raises(ValidationError):
        GenAISettings(google_api_key="short")
