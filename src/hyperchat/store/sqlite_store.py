import asyncio
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Sequence

from common.ids import generate_id
from hyperchat.errors import StorageError
from hyperchat.models import Message, SessionMeta, SessionSummary, utc_now_iso
from hyperchat.titles import DEFAULT_TITLE

logger = logging.getLogger(__name__)


SCHEMA_VERSION = 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS sessions (
    session_id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS messages (
    session_id TEXT NOT NULL REFERENCES sessions(session_id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    content TEXT NOT NULL,
    is_user INTEGER NOT NULL,
    timestamp TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (session_id, position)
);

CREATE INDEX IF NOT EXISTS idx_sessions_updated_at ON sessions(updated_at);
"""


class SqliteStore:
    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA synchronous=NORMAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        cursor = self._conn.cursor()
        cursor.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
        )
        if not cursor.fetchone():
            cursor.executescript(SCHEMA)
            cursor.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
            self._conn.commit()
            logger.info(f"Chat database initialized with schema version {SCHEMA_VERSION}")
        else:
            cursor.execute("SELECT version FROM schema_version")
            row = cursor.fetchone()
            if row and row[0] != SCHEMA_VERSION:
                logger.warning(
                    f"Schema version mismatch: expected {SCHEMA_VERSION}, got {row[0]}"
                )

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Database connection not initialized")
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def _fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchone()
            except sqlite3.Error as e:
                raise StorageError(f"Query failed: {e}") from e

    def _fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"Query failed: {e}") from e

    def _create(self) -> str:
        session_id = generate_id()
        now = utc_now_iso()
        try:
            with self._lock:
                self.conn.execute(
                    "INSERT INTO sessions (session_id, title, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?)",
                    (session_id, DEFAULT_TITLE, now, now),
                )
                self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to create session: {e}")
            raise StorageError(f"Failed to create session: {e}") from e
        logger.info(f"Created session {session_id}")
        return session_id

    def _get(self, session_id: str) -> SessionMeta | None:
        row = self._fetchone(
            "SELECT session_id, title, created_at, updated_at FROM sessions WHERE session_id = ?",
            (session_id,),
        )
        if row is None:
            return None
        return SessionMeta(
            id=row["session_id"],
            title=row["title"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def _load(self, session_id: str) -> list[Message]:
        if self._get(session_id) is None:
            raise StorageError(f"Session {session_id} not found")
        rows = self._fetchall(
            "SELECT content, is_user, timestamp FROM messages "
            "WHERE session_id = ? ORDER BY position",
            (session_id,),
        )
        return [
            Message(content=r["content"], is_user=bool(r["is_user"]), timestamp=r["timestamp"])
            for r in rows
        ]

    def _save(self, session_id: str, messages: list[Message]) -> None:
        try:
            with self._lock:
                cursor = self.conn.cursor()
                cursor.execute(
                    "UPDATE sessions SET updated_at = ? WHERE session_id = ?",
                    (utc_now_iso(), session_id),
                )
                if cursor.rowcount == 0:
                    self.conn.rollback()
                    raise StorageError(f"Session {session_id} not found")
                cursor.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))
                cursor.executemany(
                    "INSERT INTO messages (session_id, position, content, is_user, timestamp) "
                    "VALUES (?, ?, ?, ?, ?)",
                    [
                        (session_id, i, m.content, int(m.is_user), m.timestamp)
                        for i, m in enumerate(messages)
                    ],
                )
                self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save messages for {session_id}: {e}")
            raise StorageError(f"Failed to save messages: {e}") from e
        logger.debug(f"Saved {len(messages)} messages to session {session_id}")

    def _update_title(self, session_id: str, title: str) -> None:
        try:
            with self._lock:
                cursor = self.conn.execute(
                    "UPDATE sessions SET title = ?, updated_at = ? WHERE session_id = ?",
                    (title, utc_now_iso(), session_id),
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update title: {e}") from e
        if cursor.rowcount == 0:
            raise StorageError(f"Session {session_id} not found")

    def _list(self) -> list[SessionSummary]:
        rows = self._fetchall(
            """
            SELECT s.session_id, s.title, s.created_at, s.updated_at,
                   COUNT(m.position) AS message_count
            FROM sessions s LEFT JOIN messages m ON m.session_id = s.session_id
            GROUP BY s.session_id
            ORDER BY s.updated_at DESC
            """
        )
        return [
            SessionSummary(
                id=r["session_id"],
                title=r["title"],
                created_at=r["created_at"],
                updated_at=r["updated_at"],
                message_count=r["message_count"],
            )
            for r in rows
        ]

    def _delete(self, session_id: str) -> bool:
        try:
            with self._lock:
                self.conn.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))
                cursor = self.conn.execute(
                    "DELETE FROM sessions WHERE session_id = ?", (session_id,)
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete session: {e}") from e
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted session {session_id}")
        return deleted

    async def create_session(self) -> str:
        return await asyncio.to_thread(self._create)

    async def get_session(self, session_id: str) -> SessionMeta | None:
        return await asyncio.to_thread(self._get, session_id)

    async def load_messages(self, session_id: str) -> list[Message]:
        return await asyncio.to_thread(self._load, session_id)

    async def save_messages(self, session_id: str, messages: Sequence[Message]) -> None:
        await asyncio.to_thread(self._save, session_id, list(messages))

    async def update_title(self, session_id: str, title: str) -> None:
        await asyncio.to_thread(self._update_title, session_id, title)

    async def list_sessions(self) -> list[SessionSummary]:
        return await asyncio.to_thread(self._list)

    async def delete_session(self, session_id: str) -> bool:
        return await asyncio.to_thread(self._delete, session_id)
