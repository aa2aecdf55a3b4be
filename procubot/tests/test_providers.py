import pytest

from procubot.providers import create_provider
from procubot.providers.gemini_client import GeminiClient
from procubot.providers.registry import GEMINI_CONFIG, get_provider_config, resolve_model


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "gemini"
        gemini_api_key = "g"
        http_timeout = 1.0
        gemini_base_url = "https://generativelanguage.googleapis.com/v1beta"

    monkeypatch.setattr("procubot.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, GeminiClient)


def test_create_provider_unknown():
    with pytest.raises(KeyError):
        create_provider("nope")


def test_registry_lookup():
    assert get_provider_config("Gemini") is GEMINI_CONFIG
    assert resolve_model(GEMINI_CONFIG, "procubot-chat").provider_model == "gemini-3-pro-preview"
    # 未登记的名称按厂商模型 ID 透传
    assert resolve_model(GEMINI_CONFIG, "gemini-2.0-flash").provider_model == "gemini-2.0-flash"
