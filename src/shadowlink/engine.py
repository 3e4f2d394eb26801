"""
The engine sequences one chat turn across the pillars.

It is bound to an application object that exposes ``store``, ``llm`` and
``settings``; the binding may happen after construction.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from .errors import ConversationNotFoundError, InvalidInputError
from .history import collect_messages, render_history
from .models import AI_SENDER, USER_SENDER, Message
from .templates import generate_chat_response

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, I encountered an error and couldn't respond."


class Engine(ABC):
    """Interface for handling a single message-send request."""

    def __init__(self, app: Any = None):
        self.app = app

    @abstractmethod
    def handle_message(
        self, user_input: str, user_id: str, convo_id: Optional[str]
    ) -> str:
        """Stores the user's message and the AI's reply, returning the conversation id."""
        pass


class Synchronous(Engine):
    """Runs the whole turn, model call included, before returning."""

    def handle_message(
        self, user_input: str, user_id: str, convo_id: Optional[str]
    ) -> str:
        if not user_id:
            raise InvalidInputError("User is not authenticated.", field="user_id")
        if not user_input or not user_input.strip():
            raise InvalidInputError("Message cannot be empty.", field="text")

        user_message = Message.new(user_input, USER_SENDER)
        convo_id = self._save_user_message(user_id, convo_id, user_message)

        try:
            reply = self._generate_reply(user_id, user_input)
            self.app.store.append_message(convo_id, Message.new(reply, AI_SENDER))
        except Exception:
            # The apology looks like any other reply in the stored transcript.
            logger.exception(
                "Error generating or saving AI response for conversation %s", convo_id
            )
            self.app.store.append_message(
                convo_id, Message.new(APOLOGY_MESSAGE, AI_SENDER)
            )

        return convo_id

    def _save_user_message(
        self, user_id: str, convo_id: Optional[str], message: Message
    ) -> str:
        store = self.app.store
        if not convo_id:
            convo_id = store.create_conversation(user_id, message)
            logger.info("Created conversation %s for user %s", convo_id, user_id)
            return convo_id

        conversation = store.get_conversation(convo_id)
        if conversation is None or conversation.user_id != user_id:
            raise ConversationNotFoundError(convo_id)
        store.append_message(convo_id, message)
        return convo_id

    def _generate_reply(self, user_id: str, latest_message: str) -> str:
        settings = self.app.settings
        messages = collect_messages(self.app.store.load_user_conversations(user_id))
        history = render_history(messages, max_messages=settings.history_window)
        response = generate_chat_response(
            self.app.llm,
            history,
            latest_message,
            gender=settings.PERSONA_GENDER,
        )
        return response.response
