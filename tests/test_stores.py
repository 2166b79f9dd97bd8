import json
from pathlib import Path

import pytest

from hyperchat.config import ChatConfig
from hyperchat.errors import StorageError
from hyperchat.models import Message
from hyperchat.store import JsonFileStore, MemoryStore, SqliteStore, open_store
from hyperchat.titles import DEFAULT_TITLE


@pytest.fixture(params=["json", "sqlite", "memory"])
def any_store(request, tmp_path: Path):
    if request.param == "json":
        yield JsonFileStore(tmp_path / "chats")
    elif request.param == "sqlite":
        store = SqliteStore(tmp_path / "chats.db")
        yield store
        store.close()
    else:
        yield MemoryStore()


def _messages(n: int) -> list[Message]:
    return [Message(content=f"m{i}", is_user=i % 2 == 0, timestamp="12:00") for i in range(n)]


async def test_create_session_has_default_title(any_store):
    session_id = await any_store.create_session()
    meta = await any_store.get_session(session_id)
    assert meta is not None
    assert meta.id == session_id
    assert meta.title == DEFAULT_TITLE
    assert await any_store.load_messages(session_id) == []


async def test_save_overwrites_snapshot(any_store):
    session_id = await any_store.create_session()
    await any_store.save_messages(session_id, _messages(3))
    await any_store.save_messages(session_id, _messages(2))
    loaded = await any_store.load_messages(session_id)
    assert loaded == _messages(2)


async def test_order_and_flags_round_trip(any_store):
    session_id = await any_store.create_session()
    await any_store.save_messages(session_id, _messages(5))
    loaded = await any_store.load_messages(session_id)
    assert [m.content for m in loaded] == ["m0", "m1", "m2", "m3", "m4"]
    assert [m.is_user for m in loaded] == [True, False, True, False, True]


async def test_update_title(any_store):
    session_id = await any_store.create_session()
    await any_store.update_title(session_id, "Renamed")
    assert (await any_store.get_session(session_id)).title == "Renamed"


async def test_unknown_session(any_store):
    assert await any_store.get_session("nope") is None
    with pytest.raises(StorageError):
        await any_store.load_messages("nope")
    with pytest.raises(StorageError):
        await any_store.save_messages("nope", _messages(1))
    with pytest.raises(StorageError):
        await any_store.update_title("nope", "x")


async def test_list_and_delete(any_store):
    first = await any_store.create_session()
    second = await any_store.create_session()
    await any_store.save_messages(second, _messages(4))

    sessions = await any_store.list_sessions()
    assert {s.id for s in sessions} == {first, second}
    assert sessions[0].id == second
    assert sessions[0].message_count == 4

    assert await any_store.delete_session(first) is True
    assert await any_store.delete_session(first) is False
    assert [s.id for s in await any_store.list_sessions()] == [second]


async def test_json_store_document_layout(tmp_path: Path):
    store = JsonFileStore(tmp_path)
    session_id = await store.create_session()
    await store.save_messages(session_id, _messages(2))

    data = json.loads((tmp_path / f"{session_id}.json").read_text(encoding="utf-8"))
    assert data["metadata"]["id"] == session_id
    assert data["messages"][0] == {"content": "m0", "is_user": True, "timestamp": "12:00"}


async def test_json_store_corrupt_file_is_storage_error(tmp_path: Path):
    store = JsonFileStore(tmp_path)
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError):
        await store.get_session("broken")
    assert await store.list_sessions() == []


async def test_json_store_rejects_path_like_ids(tmp_path: Path):
    store = JsonFileStore(tmp_path)
    with pytest.raises(StorageError):
        await store.get_session("../escape")


async def test_sqlite_store_survives_reopen(tmp_path: Path):
    db_path = tmp_path / "chats.db"
    store = SqliteStore(db_path)
    session_id = await store.create_session()
    await store.save_messages(session_id, _messages(3))
    store.close()

    reopened = SqliteStore(db_path)
    assert await reopened.load_messages(session_id) == _messages(3)
    reopened.close()


def test_open_store_selects_backend(tmp_path: Path):
    assert isinstance(open_store(ChatConfig(store="json", data_dir=str(tmp_path))), JsonFileStore)
    sqlite_store = open_store(ChatConfig(store="sqlite", data_dir=str(tmp_path)))
    assert isinstance(sqlite_store, SqliteStore)
    sqlite_store.close()
    assert isinstance(open_store(ChatConfig(store="memory")), MemoryStore)
