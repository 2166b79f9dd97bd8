from __future__ import annotations

from typing import Protocol, Sequence

from hyperchat.models import Message, SessionMeta, SessionSummary


class MessageStore(Protocol):
    """Durable mapping of session id to an ordered message snapshot.

    Implementations raise ``StorageError`` when the backend fails. A missing
    session is not a failure for ``get_session``, which returns ``None``.
    """

    async def create_session(self) -> str: ...

    async def get_session(self, session_id: str) -> SessionMeta | None: ...

    async def load_messages(self, session_id: str) -> list[Message]: ...

    async def save_messages(self, session_id: str, messages: Sequence[Message]) -> None: ...

    async def update_title(self, session_id: str, title: str) -> None: ...

    async def list_sessions(self) -> list[SessionSummary]: ...

    async def delete_session(self, session_id: str) -> bool: ...

    def close(self) -> None: ...
