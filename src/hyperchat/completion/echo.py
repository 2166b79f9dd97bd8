from hyperchat.history import MessageHistory


class EchoChatService:
    """Offline stand-in that answers every message by repeating it."""

    def __init__(self, prefix: str = "echo: "):
        self.prefix = prefix
        self.history = MessageHistory()

    def reset_context(self) -> None:
        self.history.clear()

    async def send(self, text: str) -> str:
        reply = f"{self.prefix}{text}"
        self.history.add_turn(text, reply)
        return reply
