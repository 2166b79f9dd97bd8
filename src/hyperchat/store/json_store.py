import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from common.ids import generate_id
from common.jsonio import atomic_write_json, load_json
from hyperchat.errors import StorageError
from hyperchat.models import (
    Message,
    SessionDocument,
    SessionMeta,
    SessionSummary,
    utc_now_iso,
)
from hyperchat.titles import DEFAULT_TITLE

logger = logging.getLogger(__name__)


class JsonFileStore:
    """One JSON document per session under ``data_dir``."""

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self._lock = threading.Lock()

    def _path(self, session_id: str) -> Path:
        if not session_id or not session_id.replace("-", "").replace("_", "").isalnum():
            raise StorageError(f"Invalid session id: {session_id!r}")
        return self.data_dir / f"{session_id}.json"

    def _read(self, session_id: str) -> SessionDocument | None:
        path = self._path(session_id)
        try:
            data = load_json(path, strict=True)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read session {session_id}: {e}") from e
        if data is None:
            return None
        try:
            return SessionDocument.model_validate(data)
        except ValidationError as e:
            raise StorageError(f"Invalid session document {path.name}: {e}") from e

    def _require(self, session_id: str) -> SessionDocument:
        document = self._read(session_id)
        if document is None:
            raise StorageError(f"Session {session_id} not found")
        return document

    def _write(self, document: SessionDocument) -> None:
        document.metadata.updated_at = utc_now_iso()
        try:
            atomic_write_json(
                self._path(document.metadata.id), document.model_dump(mode="json")
            )
        except OSError as e:
            raise StorageError(
                f"Failed to write session {document.metadata.id}: {e}"
            ) from e

    def _create(self) -> str:
        session_id = generate_id()
        with self._lock:
            self._write(SessionDocument(metadata=SessionMeta(id=session_id, title=DEFAULT_TITLE)))
        logger.info(f"Created session {session_id}")
        return session_id

    def _save_messages(self, session_id: str, messages: list[Message]) -> None:
        with self._lock:
            document = self._require(session_id)
            document.messages = messages
            self._write(document)
        logger.debug(f"Saved {len(messages)} messages to session {session_id}")

    def _update_title(self, session_id: str, title: str) -> None:
        with self._lock:
            document = self._require(session_id)
            document.metadata.title = title
            self._write(document)
        logger.debug(f"Renamed session {session_id} to '{title}'")

    def _list(self) -> list[SessionSummary]:
        sessions: list[SessionSummary] = []
        if not self.data_dir.exists():
            return sessions
        for path in self.data_dir.glob("*.json"):
            try:
                document = self._read(path.stem)
            except StorageError as e:
                logger.warning(f"Skipping unreadable session file {path.name}: {e}")
                continue
            if document is None:
                continue
            sessions.append(
                SessionSummary(
                    **document.metadata.model_dump(),
                    message_count=len(document.messages),
                )
            )
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    def _delete(self, session_id: str) -> bool:
        path = self._path(session_id)
        with self._lock:
            if not path.exists():
                return False
            try:
                path.unlink()
            except OSError as e:
                raise StorageError(f"Failed to delete session {session_id}: {e}") from e
        logger.info(f"Deleted session {session_id}")
        return True

    async def create_session(self) -> str:
        return await asyncio.to_thread(self._create)

    async def get_session(self, session_id: str) -> SessionMeta | None:
        document = await asyncio.to_thread(self._read, session_id)
        return document.metadata if document else None

    async def load_messages(self, session_id: str) -> list[Message]:
        document = await asyncio.to_thread(self._require, session_id)
        return list(document.messages)

    async def save_messages(self, session_id: str, messages: Sequence[Message]) -> None:
        await asyncio.to_thread(self._save_messages, session_id, list(messages))

    async def update_title(self, session_id: str, title: str) -> None:
        await asyncio.to_thread(self._update_title, session_id, title)

    async def list_sessions(self) -> list[SessionSummary]:
        return await asyncio.to_thread(self._list)

    async def delete_session(self, session_id: str) -> bool:
        return await asyncio.to_thread(self._delete, session_id)

    def close(self) -> None:
        pass
