from typing import Any, Dict, List, Optional


class MessageHistory:
    """Turn history held by a completion service between context resets."""

    def __init__(self, system_prompt: Optional[str] = None):
        self.messages: List[Dict[str, Any]] = []
        self.system_prompt: Optional[str] = system_prompt

    def add_user_message(self, content: str):
        self.messages.append({"role": "user", "content": content})

    def add_assistant_message(self, content: str):
        self.messages.append({"role": "assistant", "content": content})

    def add_turn(self, user_content: str, assistant_content: str):
        self.add_user_message(user_content)
        self.add_assistant_message(assistant_content)

    def get_messages_for_api(self, pending_user: Optional[str] = None) -> List[Dict[str, Any]]:
        msgs: List[Dict[str, Any]] = []
        if self.system_prompt:
            msgs.append({"role": "system", "content": self.system_prompt})
        msgs.extend(self.messages)
        if pending_user is not None:
            msgs.append({"role": "user", "content": pending_user})
        return msgs

    def clear(self):
        self.messages = []

    def __len__(self) -> int:
        return len(self.messages)
