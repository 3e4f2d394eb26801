"""Builds the model's view of a user's past: every message, oldest first."""

from typing import Iterable, List, Optional

from .models import Conversation, Message, message_sort_key


def collect_messages(conversations: Iterable[Conversation]) -> List[Message]:
    """Flattens the messages of all conversations and sorts them by creation time."""
    messages = [msg for conv in conversations for msg in conv.messages]
    messages.sort(key=message_sort_key)
    return messages


def render_history(
    messages: List[Message], max_messages: Optional[int] = None
) -> str:
    """Renders ``sender: text`` lines, keeping only the trailing ``max_messages``."""
    if max_messages:
        messages = messages[-max_messages:]
    return "\n".join(f"{msg.sender}: {msg.text}" for msg in messages)
