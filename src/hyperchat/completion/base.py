from __future__ import annotations

from typing import Protocol


class CompletionService(Protocol):
    """Stateful chat client.

    Every ``send`` sees all turns sent since the last ``reset_context`` and
    appends its own turn on success.
    """

    def reset_context(self) -> None: ...

    async def send(self, text: str) -> str: ...
