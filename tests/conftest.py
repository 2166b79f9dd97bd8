import asyncio
from datetime import datetime

import pytest

from hyperchat.errors import StorageError
from hyperchat.store.memory_store import MemoryStore
from hyperchat.sync.synchronizer import SessionSynchronizer


class _FakeStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.calls: list[tuple] = []
        self.fail_create = False
        self.fail_save = False
        self.fail_title = False
        self.fail_load = False

    async def create_session(self) -> str:
        self.calls.append(("create_session",))
        if self.fail_create:
            raise StorageError("disk full")
        return await super().create_session()

    async def get_session(self, session_id):
        self.calls.append(("get_session", session_id))
        return await super().get_session(session_id)

    async def load_messages(self, session_id):
        self.calls.append(("load_messages", session_id))
        if self.fail_load:
            raise StorageError("read error")
        return await super().load_messages(session_id)

    async def save_messages(self, session_id, messages):
        self.calls.append(("save_messages", session_id, len(messages)))
        if self.fail_save:
            raise StorageError("write error")
        await super().save_messages(session_id, messages)

    async def update_title(self, session_id, title):
        self.calls.append(("update_title", session_id, title))
        if self.fail_title:
            raise StorageError("write error")
        await super().update_title(session_id, title)


class _ScriptedCompletion:
    """Records every call; replies ``reply to <text>``; fails on listed texts."""

    def __init__(self, fail_on: set[str] | None = None):
        self.calls: list[tuple[str, str | None]] = []
        self.fail_on = set(fail_on or ())
        self.context: list[str] = []

    def reset_context(self) -> None:
        self.calls.append(("reset", None))
        self.context = []

    async def send(self, text: str) -> str:
        self.calls.append(("send", text))
        if text in self.fail_on:
            raise RuntimeError(f"service unavailable for {text!r}")
        self.context.append(text)
        return f"reply to {text}"

    def sends_since_last_reset(self) -> list[str]:
        out: list[str] = []
        for kind, text in self.calls:
            if kind == "reset":
                out = []
            else:
                out.append(text)
        return out


class _GatedCompletion(_ScriptedCompletion):
    """Holds every ``send`` until ``release`` is set."""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def send(self, text: str) -> str:
        self.started.set()
        await self.release.wait()
        return await super().send(text)


@pytest.fixture
def store() -> _FakeStore:
    return _FakeStore()


@pytest.fixture
def completion() -> _ScriptedCompletion:
    return _ScriptedCompletion()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 5, 1, 9, 30)


@pytest.fixture
async def sync(store, completion, fixed_clock):
    synchronizer = SessionSynchronizer(store, completion, clock=fixed_clock)
    yield synchronizer
    await synchronizer.close()


@pytest.fixture
def seed(store):
    async def _seed(title: str, messages) -> str:
        session_id = await MemoryStore.create_session(store)
        await MemoryStore.update_title(store, session_id, title)
        await MemoryStore.save_messages(store, session_id, messages)
        return session_id

    return _seed


@pytest.fixture
def gated_completion() -> _GatedCompletion:
    return _GatedCompletion()
