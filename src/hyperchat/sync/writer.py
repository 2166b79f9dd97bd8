from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from hyperchat.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WriteJob:
    label: str
    session_id: str
    run: Callable[[], Awaitable[None]]


class PersistenceWriter:
    """Runs store writes one after another, in the order they were scheduled.

    Callers do not wait for the write; ``flush`` waits for everything queued so
    far and returns the failures collected since the previous flush.
    """

    def __init__(self, on_error: Callable[[PersistenceError], None] | None = None):
        self._on_error = on_error
        self._queue: asyncio.Queue[WriteJob] | None = None
        self._worker: asyncio.Task | None = None
        self._failures: list[PersistenceError] = []

    def _ensure_worker(self) -> asyncio.Queue[WriteJob]:
        if self._queue is None or self._worker is None or self._worker.done():
            self._queue = asyncio.Queue()
            self._worker = asyncio.get_running_loop().create_task(self._run())
        return self._queue

    def schedule(self, job: WriteJob) -> None:
        self._ensure_worker().put_nowait(job)
        logger.debug(f"Queued {job.label} for session {job.session_id}")

    async def _run(self) -> None:
        assert self._queue is not None
        queue = self._queue
        while True:
            job = await queue.get()
            try:
                await job.run()
            except Exception as e:
                error = PersistenceError(
                    f"{job.label} failed for session {job.session_id}: {e}", cause=e
                )
                logger.warning(str(error))
                self._failures.append(error)
                if self._on_error is not None:
                    self._on_error(error)
            finally:
                queue.task_done()

    @property
    def pending_writes(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def flush(self) -> list[PersistenceError]:
        if self._queue is not None:
            await self._queue.join()
        failures, self._failures = self._failures, []
        return failures

    async def close(self) -> list[PersistenceError]:
        failures = await self.flush()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
            self._queue = None
        return failures
