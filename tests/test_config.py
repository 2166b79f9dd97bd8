import pytest

from hyperchat.config import ChatConfig, resolve_model_alias
from hyperchat.errors import ConfigError


def test_env_defaults(monkeypatch):
    monkeypatch.setenv("HYPERCHAT_MODEL", "sonnet")
    monkeypatch.setenv("HYPERCHAT_STORE", "sqlite")
    monkeypatch.setenv("HYPERCHAT_DATA_DIR", "/tmp/chats")

    config = ChatConfig.from_env()

    assert config.model == "claude-sonnet-4-20250514"
    assert config.store == "sqlite"
    assert config.data_dir == "/tmp/chats"


def test_overrides_beat_env(monkeypatch):
    monkeypatch.setenv("HYPERCHAT_STORE", "sqlite")
    config = ChatConfig.from_env(store="memory", model=None)
    assert config.store == "memory"


def test_unknown_override():
    with pytest.raises(ConfigError):
        ChatConfig.from_env(colour="blue")


def test_alias_passthrough():
    assert resolve_model_alias("Flash") == "gemini/gemini-2.5-flash"
    assert resolve_model_alias("my-local-model") == "my-local-model"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"store": "redis"},
        {"temperature": 3.0},
        {"max_tokens": 0},
        {"model": ""},
        {"store": "json", "data_dir": ""},
    ],
)
def test_validate_rejects(kwargs):
    with pytest.raises(ConfigError):
        ChatConfig(**kwargs).validate()


def test_validate_accepts_defaults():
    ChatConfig(model="echo", store="memory").validate()
