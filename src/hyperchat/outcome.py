from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from hyperchat.errors import SyncError


class Status(str, Enum):
    OK = "ok"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class Outcome:
    status: Status
    error: SyncError | None = None
    warnings: tuple[SyncError, ...] = ()
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is Status.OK

    @classmethod
    def rejected(cls, reason: str) -> "Outcome":
        return cls(status=Status.REJECTED, reason=reason)


@dataclass(frozen=True, slots=True)
class SubmitOutcome(Outcome):
    reply: str | None = None
    input_consumed: bool = False

    @classmethod
    def rejected(cls, reason: str) -> "SubmitOutcome":
        return cls(status=Status.REJECTED, reason=reason)


@dataclass(frozen=True, slots=True)
class SelectOutcome(Outcome):
    session_id: str | None = None
    replayed_turns: int = 0
    failed_turns: tuple[int, ...] = field(default=())

    @classmethod
    def rejected(cls, reason: str) -> "SelectOutcome":
        return cls(status=Status.REJECTED, reason=reason)
