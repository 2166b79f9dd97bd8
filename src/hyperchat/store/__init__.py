from pathlib import Path

from hyperchat.config import ChatConfig
from hyperchat.errors import ConfigError
from hyperchat.store.base import MessageStore
from hyperchat.store.json_store import JsonFileStore
from hyperchat.store.memory_store import MemoryStore
from hyperchat.store.sqlite_store import SqliteStore


def open_store(config: ChatConfig) -> MessageStore:
    if config.store == "json":
        return JsonFileStore(Path(config.data_dir))
    if config.store == "sqlite":
        return SqliteStore(Path(config.data_dir) / "chats.db")
    if config.store == "memory":
        return MemoryStore()
    raise ConfigError(f"Unknown store backend: {config.store}")


__all__ = ["JsonFileStore", "MemoryStore", "MessageStore", "SqliteStore", "open_store"]
