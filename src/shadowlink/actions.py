"""
The action surface consumed by the UI shell.

Every action returns a JSON-serializable dict and never raises: failures come
back tagged with ``success: False`` and a user-facing ``error`` message.
"""

import logging
from typing import Any, Dict, Optional

from .errors import UNKNOWN_ERROR_MESSAGE, InvalidInputError, ShadowLinkError
from .history import collect_messages, render_history
from .models import User, message_sort_key
from .templates import generate_initial_personality, summarize_conversation_history

logger = logging.getLogger(__name__)

Result = Dict[str, Any]


def _failure(action: str, error: Exception) -> Result:
    if isinstance(error, ShadowLinkError):
        logger.warning("%s failed: %s", action, error.message)
        return {"success": False, "error": error.message}
    logger.exception("Unexpected error in %s", action)
    return {"success": False, "error": UNKNOWN_ERROR_MESSAGE}


def _require_user(user_id: Optional[str]) -> None:
    if not user_id:
        raise InvalidInputError("User is not authenticated.", field="user_id")


class Actions:
    """Binds the action surface to an application's pillars."""

    def __init__(self, app: Any = None):
        self.app = app

    def send_message(
        self, user_id: str, conversation_id: Optional[str], text: str
    ) -> Result:
        try:
            convo_id = self.app.engine.handle_message(text, user_id, conversation_id)
        except Exception as e:
            return _failure("send_message", e)
        return {"success": True, "conversation_id": convo_id}

    def get_conversations(self, user_id: str) -> Result:
        try:
            _require_user(user_id)
            conversations = self.app.store.list_conversations(
                user_id, limit=self.app.settings.CONVERSATION_LIST_LIMIT
            )
        except Exception as e:
            return _failure("get_conversations", e)
        return {
            "success": True,
            "conversations": [conv.model_dump(mode="json") for conv in conversations],
        }

    def get_conversation(self, user_id: str, conversation_id: str) -> Result:
        """Loads one conversation; other users' conversations read as not found."""
        try:
            _require_user(user_id)
            conversation = self.app.store.get_conversation(conversation_id)
        except Exception as e:
            return _failure("get_conversation", e)
        if conversation is None or conversation.user_id != user_id:
            return {"success": False, "error": "Conversation not found."}
        conversation.messages.sort(key=message_sort_key)
        return {"success": True, "conversation": conversation.model_dump(mode="json")}

    def get_dashboard_data(self, user_id: str) -> Result:
        try:
            _require_user(user_id)
            data = self.app.dashboard.build(user_id)
        except Exception as e:
            return {"error": _failure("get_dashboard_data", e)["error"]}
        return data.model_dump(mode="json")

    def create_user(
        self,
        uid: str,
        email: Optional[str],
        display_name: Optional[str],
        photo_url: Optional[str],
    ) -> Result:
        try:
            _require_user(uid)
            self.app.store.create_user(
                User(
                    uid=uid,
                    email=email,
                    display_name=display_name,
                    photo_url=photo_url,
                )
            )
        except Exception as e:
            return _failure("create_user", e)
        return {"success": True}

    def summarize_history(self, user_id: str) -> Result:
        try:
            _require_user(user_id)
            messages = collect_messages(self.app.store.load_user_conversations(user_id))
            if not messages:
                raise InvalidInputError("There is no conversation history to summarize.")
            history = render_history(messages, self.app.settings.history_window)
            summary = summarize_conversation_history(self.app.llm, history)
        except Exception as e:
            return _failure("summarize_history", e)
        return {"success": True, "summary": summary.summary}

    def generate_personality(self, description: str) -> Result:
        try:
            if not description or not description.strip():
                raise InvalidInputError("Description cannot be empty.", field="description")
            profile = generate_initial_personality(self.app.llm, description.strip())
        except Exception as e:
            return _failure("generate_personality", e)
        return {"success": True, "personality_profile": profile.personality_profile}
