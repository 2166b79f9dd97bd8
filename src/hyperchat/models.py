from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def display_timestamp(now: datetime | None = None, fmt: str = "%H:%M") -> str:
    return (now or datetime.now()).strftime(fmt)


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    is_user: bool
    timestamp: str = ""


class SessionMeta(BaseModel):
    id: str
    title: str
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class SessionDocument(BaseModel):
    metadata: SessionMeta
    messages: list[Message] = Field(default_factory=list)


class SessionSummary(BaseModel):
    id: str
    title: str
    created_at: str
    updated_at: str
    message_count: int = 0


@dataclass(frozen=True, slots=True)
class SessionView:
    messages: tuple[Message, ...]
    title: str
    session_id: str | None
    pending: bool
