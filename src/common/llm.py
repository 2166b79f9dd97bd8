import warnings
from typing import Any

import litellm
from litellm import acompletion as litellm_acompletion

warnings.filterwarnings("ignore", message="Pydantic serializer warnings")
litellm.drop_params = True


async def acompletion(
    model: str,
    messages: list[dict],
    temperature: float = 0.7,
    max_tokens: int = 2048,
    **kwargs,
) -> Any:
    params = {
        "model": model,
        "messages": messages,
        "stream": False,
        "temperature": temperature,
        "max_tokens": max_tokens,
        **kwargs,
    }
    return await litellm_acompletion(**params)


def response_text(response: Any) -> str:
    """Return the assistant text of a non-streaming completion response."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""
