from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TypeAlias

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MessageAppendedEvent:
    session_id: str | None
    index: int
    content: str
    is_user: bool
    timestamp: str


@dataclass(frozen=True, slots=True)
class TitleChangedEvent:
    session_id: str | None
    title: str
    derived: bool = False


@dataclass(frozen=True, slots=True)
class SessionChangedEvent:
    session_id: str | None
    title: str
    message_count: int
    reason: str


@dataclass(frozen=True, slots=True)
class PendingChangedEvent:
    pending: bool


@dataclass(frozen=True, slots=True)
class ReplayProgressEvent:
    session_id: str
    current: int
    total: int
    success: bool


@dataclass(frozen=True, slots=True)
class WarningEvent:
    message: str
    kind: str
    session_id: str | None = None


Event: TypeAlias = (
    MessageAppendedEvent
    | TitleChangedEvent
    | SessionChangedEvent
    | PendingChangedEvent
    | ReplayProgressEvent
    | WarningEvent
)
EventCallback: TypeAlias = Callable[[Event], None]


class EventEmitter:
    def __init__(self, callback: EventCallback | None = None):
        self._callbacks: list[EventCallback] = []
        if callback is not None:
            self._callbacks.append(callback)

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: Event) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Event listener failed on {type(event).__name__}")
