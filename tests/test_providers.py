import pytest
from fastapi import HTTPException

from adorchestrator.ai.providers import select_provider
from adorchestrator.config import settings


@pytest.fixture
def no_keys(monkeypatch):
    for field in ("google_ai_api_key", "anthropic_api_key", "sarvam_api_key"):
        monkeypatch.setattr(settings, field, None)


def test_no_configured_provider_is_503(no_keys) -> None:
    with pytest.raises(HTTPException) as exc_info:
        select_provider("auto")
    assert exc_info.value.status_code == 503


def test_unknown_provider_is_400() -> None:
    with pytest.raises(HTTPException) as exc_info:
        select_provider("llama")
    assert exc_info.value.status_code == 400


def test_auto_prefers_default_provider(no_keys, monkeypatch) -> None:
    monkeypatch.setattr(settings, "anthropic_api_key", "sk-ant-test")
    monkeypatch.setattr(settings, "sarvam_api_key", "sarvam-test")
    monkeypatch.setattr(settings, "default_ai_provider", "sarvam")

    name, provider = select_provider("auto")
    assert name == "sarvam"
    assert provider.is_available()


def test_auto_falls_through_to_configured_provider(no_keys, monkeypatch) -> None:
    monkeypatch.setattr(settings, "anthropic_api_key", "sk-ant-test")
    monkeypatch.setattr(settings, "default_ai_provider", "gemini")

    name, _ = select_provider("auto")
    assert name == "claude"
