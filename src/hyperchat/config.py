import logging
import os
from dataclasses import dataclass, field

from hyperchat.errors import ConfigError

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("json", "sqlite", "memory")

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful, concise assistant. Keep answers focused on the user's "
    "question and continue the conversation coherently across turns."
)

MODEL_ALIASES = {
    "sonnet": "claude-sonnet-4-20250514",
    "opus": "claude-opus-4-20250514",
    "haiku": "claude-3-5-haiku-20241022",
    "4o": "gpt-4o",
    "mini": "gpt-4o-mini",
    "flash": "gemini/gemini-2.5-flash",
    "gemini": "gemini/gemini-2.5-pro",
    "deepseek": "deepseek/deepseek-chat",
}


def resolve_model_alias(name: str) -> str:
    return MODEL_ALIASES.get(name.lower(), name)


def get_optional_env(name: str, default: str) -> str:
    return os.environ.get(name) or default


@dataclass
class ChatConfig:
    model: str = field(
        default_factory=lambda: get_optional_env("HYPERCHAT_MODEL", "gpt-4o-mini")
    )
    temperature: float = 0.7
    max_tokens: int = 2048
    system_prompt: str | None = DEFAULT_SYSTEM_PROMPT
    store: str = field(default_factory=lambda: get_optional_env("HYPERCHAT_STORE", "json"))
    data_dir: str = field(
        default_factory=lambda: get_optional_env("HYPERCHAT_DATA_DIR", "data/chats")
    )
    timestamp_format: str = "%H:%M"

    @classmethod
    def from_env(cls, **overrides) -> "ChatConfig":
        config = cls()
        for key, value in overrides.items():
            if value is None:
                continue
            if not hasattr(config, key):
                raise ConfigError(f"Unknown config option: {key}")
            setattr(config, key, value)
        config.model = resolve_model_alias(config.model)
        return config

    def validate(self) -> None:
        if not self.model:
            raise ConfigError("model must not be empty")
        if self.store not in STORE_BACKENDS:
            raise ConfigError(
                f"store must be one of {', '.join(STORE_BACKENDS)}, got '{self.store}'"
            )
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigError("temperature must be between 0 and 2")
        if self.max_tokens < 1:
            raise ConfigError("max_tokens must be at least 1")
        if self.store != "memory" and not self.data_dir:
            raise ConfigError("data_dir is required for persistent stores")
        logger.debug(f"Configuration validated: model={self.model} store={self.store}")
