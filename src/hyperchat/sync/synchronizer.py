from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from common.events import (
    Event,
    EventCallback,
    EventEmitter,
    MessageAppendedEvent,
    PendingChangedEvent,
    ReplayProgressEvent,
    SessionChangedEvent,
    TitleChangedEvent,
    WarningEvent,
)
from hyperchat.completion.base import CompletionService
from hyperchat.errors import (
    CompletionError,
    CreationError,
    LoadError,
    PersistenceError,
    ReplayError,
    StorageError,
    SyncError,
)
from hyperchat.models import Message, SessionSummary, SessionView, display_timestamp
from hyperchat.outcome import Outcome, SelectOutcome, Status, SubmitOutcome
from hyperchat.store.base import MessageStore
from hyperchat.sync.writer import PersistenceWriter, WriteJob
from hyperchat.titles import DEFAULT_TITLE, derive_title

logger = logging.getLogger(__name__)


class SessionSynchronizer:
    """Keeps the visible conversation, the completion context and the store in step.

    All mutating operations are serialized by the ``pending`` flag: while one
    is in flight, the others are rejected rather than queued. The in-memory
    message list is authoritative; the store receives full snapshots after
    each mutation through an ordered background writer.
    """

    def __init__(
        self,
        store: MessageStore,
        completion: CompletionService,
        *,
        clock: Callable[[], datetime] | None = None,
        timestamp_format: str = "%H:%M",
        on_event: EventCallback | None = None,
    ):
        self.store = store
        self.completion = completion
        self._clock = clock or datetime.now
        self._timestamp_format = timestamp_format
        self.events = EventEmitter(on_event)
        self.writer = PersistenceWriter(on_error=self._on_persistence_error)

        self._messages: list[Message] = []
        self._session_id: str | None = None
        self._title: str = DEFAULT_TITLE
        self._title_explicit = False
        self._pending = False

    # -- observable state ---------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def view(self) -> SessionView:
        return SessionView(
            messages=tuple(self._messages),
            title=self._title,
            session_id=self._session_id,
            pending=self._pending,
        )

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        return self.events.subscribe(callback)

    def _emit(self, event: Event) -> None:
        self.events.emit(event)

    def _set_pending(self, value: bool) -> None:
        if self._pending != value:
            self._pending = value
            self._emit(PendingChangedEvent(pending=value))

    # -- mutation helpers ---------------------------------------------------

    def _append(self, content: str, is_user: bool) -> Message:
        message = Message(
            content=content,
            is_user=is_user,
            timestamp=display_timestamp(self._clock(), self._timestamp_format),
        )
        self._messages.append(message)
        self._emit(
            MessageAppendedEvent(
                session_id=self._session_id,
                index=len(self._messages) - 1,
                content=message.content,
                is_user=message.is_user,
                timestamp=message.timestamp,
            )
        )
        self._after_mutation()
        return message

    def _after_mutation(self) -> None:
        if self._session_id is None:
            return
        session_id = self._session_id
        snapshot = list(self._messages)

        async def save() -> None:
            await self.store.save_messages(session_id, snapshot)

        self.writer.schedule(WriteJob("save_messages", session_id, save))

        if len(self._messages) == 1 and not self._title_explicit and self._title == DEFAULT_TITLE:
            self._set_title(derive_title(self._messages[0].content), derived=True)

    def _set_title(self, title: str, *, derived: bool = False) -> None:
        self._title = title
        session_id = self._session_id
        self._emit(TitleChangedEvent(session_id=session_id, title=title, derived=derived))
        if session_id is None:
            return

        async def rename() -> None:
            await self.store.update_title(session_id, title)

        self.writer.schedule(WriteJob("update_title", session_id, rename))

    def _on_persistence_error(self, error: PersistenceError) -> None:
        self._emit(WarningEvent(message=str(error), kind=error.kind))

    def _reset_completion(self) -> None:
        try:
            self.completion.reset_context()
        except Exception as e:
            logger.warning(f"Completion context reset failed: {e}")

    # -- operations ---------------------------------------------------------

    async def submit(self, text: str) -> SubmitOutcome:
        if not text or not text.strip():
            return SubmitOutcome.rejected("empty message")
        if self._pending:
            logger.debug("Submit rejected: another operation is in flight")
            return SubmitOutcome.rejected("busy")

        self._set_pending(True)
        try:
            if self._session_id is None:
                try:
                    new_id = await self.store.create_session()
                except Exception as e:
                    logger.error(f"Could not create a session: {e}")
                    error = CreationError(f"Could not create a new conversation: {e}", cause=e)
                    return SubmitOutcome(status=Status.FAILED, error=error)
                self._session_id = new_id
                self._emit(
                    SessionChangedEvent(
                        session_id=new_id,
                        title=self._title,
                        message_count=len(self._messages),
                        reason="created",
                    )
                )

            self._append(text, is_user=True)

            try:
                reply = await self.completion.send(text)
            except Exception as e:
                logger.error(f"Completion failed for session {self._session_id}: {e}")
                error = CompletionError(f"Failed to get a response: {e}", cause=e)
                return SubmitOutcome(status=Status.FAILED, error=error, input_consumed=True)

            self._append(reply, is_user=False)
            return SubmitOutcome(status=Status.OK, reply=reply, input_consumed=True)
        finally:
            self._set_pending(False)

    def new_session(self) -> Outcome:
        """Drop the active conversation and start over with an unsaved one.

        Returns REJECTED, with no state change, while another operation is in
        flight. Otherwise the reset always succeeds.
        """
        if self._pending:
            logger.debug("New session rejected: another operation is in flight")
            return Outcome.rejected("busy")

        self._messages = []
        self._session_id = None
        self._title = DEFAULT_TITLE
        self._title_explicit = False
        self._reset_completion()
        self._emit(
            SessionChangedEvent(
                session_id=None, title=DEFAULT_TITLE, message_count=0, reason="reset"
            )
        )
        logger.info("Started a new conversation")
        return Outcome(status=Status.OK)

    async def select_session(self, session_id: str) -> SelectOutcome:
        if self._pending:
            logger.debug(f"Select of {session_id} rejected: another operation is in flight")
            return SelectOutcome.rejected("busy")

        self._set_pending(True)
        try:
            # Saves still queued for this session must land before it is read back.
            await self.writer.flush()
            try:
                meta = await self.store.get_session(session_id)
                if meta is None:
                    raise LoadError(f"Conversation {session_id} not found")
                loaded = await self.store.load_messages(session_id)
            except LoadError as e:
                logger.warning(str(e))
                return SelectOutcome(status=Status.FAILED, error=e, session_id=session_id)
            except Exception as e:
                logger.error(f"Failed to load session {session_id}: {e}")
                error = LoadError(f"Failed to load conversation {session_id}: {e}", cause=e)
                return SelectOutcome(status=Status.FAILED, error=error, session_id=session_id)

            failed_turns = await self._replay(session_id, loaded)

            self._messages = list(loaded)
            self._session_id = session_id
            self._title = meta.title
            self._title_explicit = meta.title != DEFAULT_TITLE
            self._emit(
                SessionChangedEvent(
                    session_id=session_id,
                    title=meta.title,
                    message_count=len(loaded),
                    reason="selected",
                )
            )
            logger.info(f"Switched to session {session_id} ({len(loaded)} messages)")

            warnings: tuple[SyncError, ...] = ()
            if failed_turns:
                error = ReplayError(
                    f"Context rebuild incomplete: {len(failed_turns)} of "
                    f"{sum(1 for m in loaded if m.is_user)} turns failed",
                    failed_turns=failed_turns,
                )
                logger.warning(str(error))
                self._emit(WarningEvent(message=str(error), kind=error.kind, session_id=session_id))
                warnings = (error,)

            return SelectOutcome(
                status=Status.OK,
                warnings=warnings,
                session_id=session_id,
                replayed_turns=sum(1 for m in loaded if m.is_user) - len(failed_turns),
                failed_turns=tuple(failed_turns),
            )
        finally:
            self._set_pending(False)

    async def _replay(self, session_id: str, messages: list[Message]) -> list[int]:
        """Rebuild the completion context from the stored user turns, in order.

        Returns the positions (within ``messages``) of turns that failed.
        """
        self._reset_completion()
        user_turns = [(i, m) for i, m in enumerate(messages) if m.is_user]
        failed: list[int] = []
        for n, (position, message) in enumerate(user_turns, start=1):
            try:
                await self.completion.send(message.content)
                success = True
            except Exception as e:
                logger.debug(f"Replay of turn {position} in {session_id} failed: {e}")
                failed.append(position)
                success = False
            self._emit(
                ReplayProgressEvent(
                    session_id=session_id, current=n, total=len(user_turns), success=success
                )
            )
        return failed

    async def rename_session(self, title: str) -> Outcome:
        if self._pending:
            return Outcome.rejected("busy")
        if self._session_id is None:
            return Outcome.rejected("conversation not saved yet")
        title = title.strip()
        if not title:
            return Outcome.rejected("empty title")

        session_id = self._session_id
        self._title = title
        self._title_explicit = True
        self._emit(TitleChangedEvent(session_id=session_id, title=title))
        self._set_pending(True)
        try:
            # Queued writes (an auto-derived title among them) must land first.
            await self.writer.flush()
            await self.store.update_title(session_id, title)
        except Exception as e:
            logger.warning(f"Failed to persist title for {session_id}: {e}")
            error = PersistenceError(f"Title saved locally only: {e}", cause=e)
            self._on_persistence_error(error)
            return Outcome(status=Status.OK, warnings=(error,))
        finally:
            self._set_pending(False)
        logger.info(f"Renamed session {session_id} to '{title}'")
        return Outcome(status=Status.OK)

    async def delete_session(self, session_id: str) -> Outcome:
        if self._pending:
            return Outcome.rejected("busy")
        self._set_pending(True)
        try:
            await self.writer.flush()
            deleted = await self.store.delete_session(session_id)
        except StorageError as e:
            logger.error(f"Failed to delete session {session_id}: {e}")
            error = PersistenceError(f"Failed to delete conversation {session_id}: {e}", cause=e)
            return Outcome(status=Status.FAILED, error=error)
        finally:
            self._set_pending(False)
        if not deleted:
            return Outcome(
                status=Status.FAILED,
                error=LoadError(f"Conversation {session_id} not found"),
            )
        if session_id == self._session_id:
            self.new_session()
        return Outcome(status=Status.OK)

    async def list_sessions(self) -> list[SessionSummary]:
        return await self.store.list_sessions()

    async def flush(self) -> list[PersistenceError]:
        return await self.writer.flush()

    async def close(self) -> list[PersistenceError]:
        return await self.writer.close()
