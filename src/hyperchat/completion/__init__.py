from hyperchat.completion.base import CompletionService
from hyperchat.completion.echo import EchoChatService
from hyperchat.completion.litellm_service import LiteLLMChatService
from hyperchat.config import ChatConfig


def build_completion_service(config: ChatConfig) -> CompletionService:
    if config.model == "echo":
        return EchoChatService()
    return LiteLLMChatService(
        model=config.model,
        system_prompt=config.system_prompt,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


__all__ = [
    "CompletionService",
    "EchoChatService",
    "LiteLLMChatService",
    "build_completion_service",
]
