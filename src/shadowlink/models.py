"""
Defines the core Pydantic data models for the application.

These models are the contract between the store, the hosted model boundary,
the orchestrator and the dashboard. Field aliases follow the camelCase names
used in the document store, so a model can be loaded straight from a stored
document and dumped back with ``by_alias=True``.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# --- Constants ---
USER_SENDER = "user"
AI_SENDER = "ai"
Sender = Literal["user", "ai"]

DEFAULT_CONVERSATION_TITLE = "New Conversation"


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Stored records ---
class User(_Document):
    """A signed-up user, keyed by the identity provider's uid."""

    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    photo_url: Optional[str] = Field(default=None, alias="photoURL")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")


class Message(_Document):
    """A single turn in a conversation.

    Stored documents may lack ``id`` and ``createdAt``; loading one leaves
    them as None. Use ``Message.new`` for a message that is about to be
    written.
    """

    text: str
    sender: Sender
    id: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @classmethod
    def new(cls, text: str, sender: Sender) -> "Message":
        return cls(text=text, sender=sender, id=uuid.uuid4().hex, created_at=utcnow())


def message_sort_key(message: Message):
    """Chronological order; messages without a timestamp come first."""
    return (message.created_at is not None, message.created_at or _EPOCH)


class Conversation(_Document):
    """A conversation owned by exactly one user."""

    id: str
    user_id: str = Field(alias="userId")
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    last_message_at: datetime = Field(default_factory=utcnow, alias="lastMessageAt")
    summary: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)


class UserPersonality(_Document):
    """A persisted style profile. Declared for completeness; nothing fills it yet."""

    user_id: str = Field(alias="userId")
    profile: str
    writing_style: str = Field(alias="writingStyle")
    tone: str
    response_patterns: str = Field(alias="responsePatterns")


class ConversationSummary(BaseModel):
    """One entry of the sidebar conversation list."""

    id: str
    title: str
    last_message_at: datetime
    last_message_text: Optional[str] = None


# --- Tool calling ---
class ToolCall(BaseModel):
    """A model's request to run a locally registered tool."""

    id: str
    function_name: str
    function_args: str = "{}"

    def arguments(self) -> Dict[str, Any]:
        """Decodes ``function_args``; an unparseable payload yields an empty dict."""
        try:
            args = json.loads(self.function_args or "{}")
        except json.JSONDecodeError:
            return {}
        return args if isinstance(args, dict) else {}


class ToolResult(BaseModel):
    """The outcome of executing a ToolCall."""

    tool_call_id: str
    function_name: str
    content: str
    is_error: bool = False


# --- Template records ---
class PersonalityProfile(BaseModel):
    personality_profile: str = Field(
        description="The generated AI personality profile based on the prompt."
    )


class ConversationPatterns(BaseModel):
    writing_style: str = Field(description="Analysis of the user's writing style.")
    tone: str = Field(description="Analysis of the user's tone in conversations.")
    response_patterns: str = Field(
        description="Identified response patterns in the user's conversations."
    )


class HistorySummary(BaseModel):
    summary: str = Field(description="The summarized conversation history.")


class ChatResponse(BaseModel):
    response: str = Field(description="The AI-generated chat response.")


class Projection(BaseModel):
    projection: str = Field(
        description=(
            "A specific, imaginative, and slightly exaggerated future projection "
            "(e.g., 'In 2040, your dedication to the gym has made you a local "
            "fitness icon.')"
        )
    )


class FutureProjection(BaseModel):
    topic: str = Field(
        description="The main topic identified from the conversation (e.g., Health, Career, Learning)."
    )
    projection: str = Field(
        description="A textual projection of a potential future scenario based on the topic."
    )


# --- Dashboard ---
class DayVolume(BaseModel):
    date: str
    user: int = 0
    ai: int = 0


class DistributionSlice(BaseModel):
    name: str
    value: int


class DashboardData(BaseModel):
    """Read-only aggregate over all of a user's conversations."""

    total_conversations: int = 0
    total_messages: int = 0
    user_messages: int = 0
    ai_messages: int = 0
    message_volume: List[DayVolume] = Field(default_factory=list)
    message_distribution: List[DistributionSlice] = Field(default_factory=list)
    trajectory_analysis: Optional[ConversationPatterns] = None
    future_self: Optional[FutureProjection] = None
