DEFAULT_TITLE = "New Conversation"

TITLE_MAX_LENGTH = 30
ELLIPSIS = "..."


def derive_title(text: str) -> str:
    """Title for a conversation, cut from its first user message.

    Text longer than ``TITLE_MAX_LENGTH`` keeps its first 27 characters and
    gains a three-character ellipsis, so the result is exactly 30 long.
    """
    if len(text) <= TITLE_MAX_LENGTH:
        return text
    return text[: TITLE_MAX_LENGTH - len(ELLIPSIS)] + ELLIPSIS
