"""Concrete implementations for the persistence gateway."""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, TypeVar

from .errors import ConversationNotFoundError, StoreUnavailableError
from .models import (
    DEFAULT_CONVERSATION_TITLE,
    Conversation,
    ConversationSummary,
    Message,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONVERSATION_LIST_LIMIT = 20
TITLE_LENGTH = 30

USERS_COLLECTION = "users"
CONVERSATIONS_COLLECTION = "conversations"


def make_title(conversation: Conversation, length: int = TITLE_LENGTH) -> str:
    """Sidebar title: the last message's text, cut to ``length`` characters."""
    if not conversation.messages:
        return DEFAULT_CONVERSATION_TITLE
    text = conversation.messages[-1].text
    return text[:length] + ("..." if len(text) > length else "")


class Store(ABC):
    """Interface for saving and loading users and conversations."""

    title_length: int = TITLE_LENGTH

    @abstractmethod
    def create_user(self, user: User) -> None:
        """Writes the user's profile document, replacing any existing one."""
        pass

    @abstractmethod
    def get_user(self, uid: str) -> Optional[User]:
        """Loads a user's profile, or None if they never signed up."""
        pass

    @abstractmethod
    def create_conversation(self, user_id: str, first_message: Message) -> str:
        """Creates a conversation owned by ``user_id`` and returns its id."""
        pass

    @abstractmethod
    def append_message(self, conversation_id: str, message: Message) -> None:
        """Appends a message and bumps the conversation's last activity time.

        Raises
        ------
        ConversationNotFoundError
            If no conversation with that id exists.
        """
        pass

    @abstractmethod
    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Loads a single conversation, or None if it does not exist."""
        pass

    @abstractmethod
    def load_user_conversations(self, user_id: str) -> List[Conversation]:
        """Loads every conversation owned by ``user_id``, in no particular order."""
        pass

    def list_conversations(
        self, user_id: str, limit: int = CONVERSATION_LIST_LIMIT
    ) -> List[ConversationSummary]:
        """Lists the user's most recently active conversations, newest first."""
        conversations = sorted(
            self.load_user_conversations(user_id),
            key=lambda c: c.last_message_at,
            reverse=True,
        )
        return [
            ConversationSummary(
                id=conv.id,
                title=make_title(conv, self.title_length),
                last_message_at=conv.last_message_at,
                last_message_text=conv.messages[-1].text if conv.messages else None,
            )
            for conv in conversations[:limit]
        ]


class InMemory(Store):
    """Keeps users and conversations in process memory."""

    def __init__(self, title_length: int = TITLE_LENGTH):
        self.title_length = title_length
        self._users: Dict[str, User] = {}
        self._conversations: Dict[str, Conversation] = {}
        self._lock = threading.Lock()

    def create_user(self, user: User) -> None:
        with self._lock:
            self._users[user.uid] = user.model_copy(deep=True)

    def get_user(self, uid: str) -> Optional[User]:
        user = self._users.get(uid)
        return user.model_copy(deep=True) if user else None

    def create_conversation(self, user_id: str, first_message: Message) -> str:
        convo_id = uuid.uuid4().hex
        created_at = first_message.created_at or utcnow()
        conversation = Conversation(
            id=convo_id,
            user_id=user_id,
            created_at=created_at,
            last_message_at=created_at,
            messages=[first_message.model_copy(deep=True)],
        )
        with self._lock:
            self._conversations[convo_id] = conversation
        return convo_id

    def append_message(self, conversation_id: str, message: Message) -> None:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise ConversationNotFoundError(conversation_id)
            conversation.messages.append(message.model_copy(deep=True))
            conversation.last_message_at = message.created_at or utcnow()

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            return conversation.model_copy(deep=True) if conversation else None

    def load_user_conversations(self, user_id: str) -> List[Conversation]:
        with self._lock:
            return [
                conv.model_copy(deep=True)
                for conv in self._conversations.values()
                if conv.user_id == user_id
            ]


class Firestore(Store):
    """Persists users and conversations in Google Cloud Firestore.

    The client is built on first use and reused for the life of the store.
    Pass ``client`` to share an already configured one.
    """

    def __init__(
        self,
        project: Optional[str] = None,
        database: Optional[str] = None,
        client: Any = None,
        title_length: int = TITLE_LENGTH,
    ):
        self.project = project
        self.database = database
        self.title_length = title_length
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> Any:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    try:
                        from google.cloud import firestore

                        kwargs = {"project": self.project}
                        if self.database:
                            kwargs["database"] = self.database
                        self._client = firestore.Client(**kwargs)
                        logger.info("Firestore client initialized successfully")
                    except Exception as e:
                        logger.exception("Failed to initialize Firestore client")
                        raise StoreUnavailableError() from e
        return self._client

    def _call(self, description: str, operation: Callable[[], T]) -> T:
        """Runs a store operation, turning backend failures into StoreUnavailableError."""
        from google.api_core import exceptions as google_exceptions

        try:
            return operation()
        except (ConversationNotFoundError, StoreUnavailableError):
            raise
        except google_exceptions.NotFound as e:
            raise ConversationNotFoundError() from e
        except Exception as e:
            logger.exception("Firestore operation failed: %s", description)
            raise StoreUnavailableError(
                f"Error while trying to {description}: {e}"
            ) from e

    def _conversations(self):
        return self.client.collection(CONVERSATIONS_COLLECTION)

    def create_user(self, user: User) -> None:
        from google.cloud import firestore

        data = user.model_dump(by_alias=True)
        data["createdAt"] = firestore.SERVER_TIMESTAMP

        self._call(
            "create user",
            lambda: self.client.collection(USERS_COLLECTION)
            .document(user.uid)
            .set(data),
        )

    def get_user(self, uid: str) -> Optional[User]:
        snapshot = self._call(
            "load user",
            lambda: self.client.collection(USERS_COLLECTION).document(uid).get(),
        )
        if not snapshot.exists:
            return None
        return User.model_validate({**(snapshot.to_dict() or {}), "uid": snapshot.id})

    def create_conversation(self, user_id: str, first_message: Message) -> str:
        from google.cloud import firestore

        def create() -> str:
            ref = self._conversations().document()
            ref.set(
                {
                    "userId": user_id,
                    "createdAt": firestore.SERVER_TIMESTAMP,
                    "lastMessageAt": firestore.SERVER_TIMESTAMP,
                    "messages": [first_message.model_dump(by_alias=True)],
                }
            )
            return ref.id

        return self._call("create conversation", create)

    def append_message(self, conversation_id: str, message: Message) -> None:
        from google.cloud import firestore

        def append() -> None:
            self._conversations().document(conversation_id).update(
                {
                    "messages": firestore.ArrayUnion(
                        [message.model_dump(by_alias=True)]
                    ),
                    "lastMessageAt": firestore.SERVER_TIMESTAMP,
                }
            )

        try:
            self._call("append message", append)
        except ConversationNotFoundError:
            raise ConversationNotFoundError(conversation_id)

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        snapshot = self._call(
            "load conversation",
            lambda: self._conversations().document(conversation_id).get(),
        )
        if not snapshot.exists:
            return None
        return self._to_conversation(snapshot)

    def load_user_conversations(self, user_id: str) -> List[Conversation]:
        from google.cloud.firestore_v1.base_query import FieldFilter

        snapshots = self._call(
            "fetch conversations",
            lambda: list(
                self._conversations()
                .where(filter=FieldFilter("userId", "==", user_id))
                .stream()
            ),
        )
        return [self._to_conversation(snapshot) for snapshot in snapshots]

    @staticmethod
    def _to_conversation(snapshot: Any) -> Conversation:
        data = snapshot.to_dict() or {}
        data.setdefault("messages", [])
        return Conversation.model_validate({**data, "id": snapshot.id})
