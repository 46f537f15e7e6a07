from relay.config import (
    EnvSecretProvider,
    StaticSecretProvider,
    get_settings,
)


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("NVIDIA_BASE_URL", raising=False)
    monkeypatch.delenv("MOONSHOT_BASE_URL", raising=False)
    monkeypatch.delenv("REQUEST_TIMEOUT", raising=False)
    monkeypatch.delenv("STREAM_IDLE_TIMEOUT", raising=False)
    monkeypatch.delenv("DEFAULT_MODEL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    settings = get_settings()

    assert settings.nvidia_base_url == "https://integrate.api.nvidia.com/v1"
    assert settings.moonshot_base_url == "https://api.moonshot.ai/v1"
    assert settings.request_timeout == 120.0
    assert settings.stream_idle_timeout is None
    assert settings.default_model == "deepseek-r1"
    assert settings.log_level == "INFO"


def test_settings_overrides(monkeypatch):
    monkeypatch.setenv("NVIDIA_BASE_URL", "http://nim.local/v1")
    monkeypatch.setenv("MOONSHOT_BASE_URL", "http://kimi.local/v1")
    monkeypatch.setenv("REQUEST_TIMEOUT", "12")
    monkeypatch.setenv("STREAM_IDLE_TIMEOUT", "3.5")
    monkeypatch.setenv("DEFAULT_MODEL", "llama-3.3-70b")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.nvidia_base_url == "http://nim.local/v1"
    assert settings.moonshot_base_url == "http://kimi.local/v1"
    assert settings.request_timeout == 12.0
    assert settings.stream_idle_timeout == 3.5
    assert settings.default_model == "llama-3.3-70b"
    assert settings.log_level == "DEBUG"


def test_env_secret_provider_reads_at_lookup_time(monkeypatch):
    monkeypatch.delenv("NVIDIA_API_KEY", raising=False)
    secrets = EnvSecretProvider()
    assert secrets.get("NVIDIA_API_KEY") is None

    monkeypatch.setenv("NVIDIA_API_KEY", "nv-key")
    assert secrets.get("NVIDIA_API_KEY") == "nv-key"

    monkeypatch.setenv("NVIDIA_API_KEY", "")
    assert secrets.get("NVIDIA_API_KEY") is None


def test_static_secret_provider():
    secrets = StaticSecretProvider({"MOONSHOT_API_KEY": "ms-key", "EMPTY": ""})
    assert secrets.get("MOONSHOT_API_KEY") == "ms-key"
    assert secrets.get("EMPTY") is None
    assert secrets.get("NVIDIA_API_KEY") is None
