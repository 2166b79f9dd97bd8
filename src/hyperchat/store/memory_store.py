from typing import Sequence

from common.ids import generate_id
from hyperchat.errors import StorageError
from hyperchat.models import Message, SessionMeta, SessionSummary, utc_now_iso
from hyperchat.titles import DEFAULT_TITLE


class MemoryStore:
    """Process-local store; contents vanish with the process."""

    def __init__(self) -> None:
        self._meta: dict[str, SessionMeta] = {}
        self._messages: dict[str, list[Message]] = {}

    def _require(self, session_id: str) -> SessionMeta:
        meta = self._meta.get(session_id)
        if meta is None:
            raise StorageError(f"Session {session_id} not found")
        return meta

    async def create_session(self) -> str:
        session_id = generate_id()
        self._meta[session_id] = SessionMeta(id=session_id, title=DEFAULT_TITLE)
        self._messages[session_id] = []
        return session_id

    async def get_session(self, session_id: str) -> SessionMeta | None:
        meta = self._meta.get(session_id)
        return meta.model_copy() if meta else None

    async def load_messages(self, session_id: str) -> list[Message]:
        self._require(session_id)
        return list(self._messages[session_id])

    async def save_messages(self, session_id: str, messages: Sequence[Message]) -> None:
        self._require(session_id).updated_at = utc_now_iso()
        self._messages[session_id] = list(messages)

    async def update_title(self, session_id: str, title: str) -> None:
        meta = self._require(session_id)
        meta.title = title
        meta.updated_at = utc_now_iso()

    async def list_sessions(self) -> list[SessionSummary]:
        sessions = [
            SessionSummary(**meta.model_dump(), message_count=len(self._messages[sid]))
            for sid, meta in self._meta.items()
        ]
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    async def delete_session(self, session_id: str) -> bool:
        if session_id not in self._meta:
            return False
        del self._meta[session_id]
        del self._messages[session_id]
        return True

    def close(self) -> None:
        pass
