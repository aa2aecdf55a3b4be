from procubot.config.settings import Settings


def _clear_key_env(monkeypatch):
    for name in ("API_KEY", "GEMINI_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_api_key_read_from_api_key_env(monkeypatch, tmp_path):
    _clear_key_env(monkeypatch)
    monkeypatch.setenv("PROCUBOT_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("API_KEY", "  key-from-env  ")
    cfg = Settings(_env_file=None)
    assert cfg.gemini_api_key == "key-from-env"


def test_blank_api_key_treated_as_missing(monkeypatch, tmp_path):
    _clear_key_env(monkeypatch)
    monkeypatch.setenv("PROCUBOT_CONFIG_FILE", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("GEMINI_API_KEY", "   ")
    cfg = Settings(_env_file=None)
    assert cfg.gemini_api_key is None


def test_yaml_config_file(monkeypatch, tmp_path):
    _clear_key_env(monkeypatch)
    monkeypatch.delenv("TEMPERATURE", raising=False)
    monkeypatch.delenv("DEFAULT_LANGUAGE", raising=False)
    config_file = tmp_path / "config.yaml"
    config_file.write_text("temperature: 0.2\ndefault_language: zh\nstream_timeout: 30\n", encoding="utf-8")
    monkeypatch.setenv("PROCUBOT_CONFIG_FILE", str(config_file))
    cfg = Settings(_env_file=None)
    assert cfg.temperature == 0.2
    assert cfg.default_language == "zh"
    assert cfg.stream_timeout == 30
