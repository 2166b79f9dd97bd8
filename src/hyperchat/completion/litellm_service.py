import logging

from common import llm
from hyperchat.history import MessageHistory

logger = logging.getLogger(__name__)


class EmptyResponseError(RuntimeError):
    pass


class LiteLLMChatService:
    def __init__(
        self,
        model: str,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.history = MessageHistory(system_prompt=system_prompt)

    def reset_context(self) -> None:
        self.history.clear()
        logger.debug(f"Context reset for {self.model}")

    async def send(self, text: str) -> str:
        messages = self.history.get_messages_for_api(pending_user=text)
        response = await llm.acompletion(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        content = llm.response_text(response)
        if not content:
            raise EmptyResponseError(f"{self.model} returned an empty response")
        # The turn joins the context only once the reply is known.
        self.history.add_turn(text, content)
        return content
