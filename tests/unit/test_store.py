"""
Tests for the Store pillar implementations.

The Store pillar is the persistence gateway. InMemory is exercised directly;
Firestore is exercised against a mocked client so no project or emulator is
needed.
"""

from datetime import timedelta
from typing import List, Optional
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from shadowlink.errors import ConversationNotFoundError, StoreUnavailableError
from shadowlink.models import (
    DEFAULT_CONVERSATION_TITLE,
    USER_SENDER,
    Conversation,
    Message,
    User,
)
from shadowlink.store import Firestore, InMemory, Store, make_title


class TestStoreInterface:
    """Test the Store abstract base class interface."""

    def test_store_is_abstract(self):
        with pytest.raises(TypeError) as exc_info:
            Store()
        assert "abstract" in str(exc_info.value).lower()

    def test_store_requires_gateway_methods(self):
        class IncompleteStore(Store):
            def create_user(self, user):
                pass

            def get_user(self, uid):
                return None

            def create_conversation(self, user_id, first_message):
                return "1"

            def append_message(self, conversation_id, message):
                pass

            def get_conversation(self, conversation_id):
                return None

        with pytest.raises(TypeError) as exc_info:
            IncompleteStore()
        assert "load_user_conversations" in str(exc_info.value)

    def test_list_conversations_is_built_on_load(self, messages_factory):
        """A subclass gets list_conversations for free from load_user_conversations."""
        messages = messages_factory(["only message"])

        class FixedStore(Store):
            def create_user(self, user):
                pass

            def get_user(self, uid):
                return None

            def create_conversation(self, user_id, first_message):
                return "1"

            def append_message(self, conversation_id, message):
                pass

            def get_conversation(self, conversation_id):
                return None

            def load_user_conversations(self, user_id) -> List[Conversation]:
                return [Conversation(id="c1", user_id=user_id, messages=messages)]

        summaries = FixedStore().list_conversations("u1")
        assert [s.id for s in summaries] == ["c1"]
        assert summaries[0].title == "only message"


class TestMakeTitle:
    def test_short_text_is_kept(self, messages_factory):
        conversation = Conversation(
            id="c", user_id="u", messages=messages_factory(["short"])
        )
        assert make_title(conversation) == "short"

    def test_long_text_is_truncated_to_30_characters(self, messages_factory):
        text = "x" * 45
        conversation = Conversation(
            id="c", user_id="u", messages=messages_factory([text])
        )
        assert make_title(conversation) == "x" * 30 + "..."

    def test_uses_last_message(self, messages_factory):
        conversation = Conversation(
            id="c", user_id="u", messages=messages_factory(["first", "last"])
        )
        assert make_title(conversation) == "last"

    def test_placeholder_without_messages(self):
        conversation = Conversation(id="c", user_id="u")
        assert make_title(conversation) == DEFAULT_CONVERSATION_TITLE


class TestInMemory:
    """Test the InMemory store implementation."""

    @pytest.fixture
    def store(self) -> InMemory:
        return InMemory()

    def test_initial_state(self, store):
        assert store.list_conversations("any_user") == []
        assert store.load_user_conversations("any_user") == []
        assert store.get_conversation("nonexistent") is None

    def test_create_conversation_establishes_ownership(self, store, messages_factory):
        first = messages_factory(["hello"])[0]

        convo_id = store.create_conversation("user1", first)
        conversation = store.get_conversation(convo_id)

        assert conversation.user_id == "user1"
        assert [m.text for m in conversation.messages] == ["hello"]
        assert conversation.created_at == first.created_at
        assert conversation.last_message_at == first.created_at

    def test_create_conversation_ids_are_unique(self, store, messages_factory):
        first = messages_factory(["hello"])[0]
        ids = {store.create_conversation("user1", first) for _ in range(5)}
        assert len(ids) == 5

    def test_append_message_bumps_last_activity(self, store, messages_factory):
        first, second = messages_factory(["hello", "hi"])
        convo_id = store.create_conversation("user1", first)

        store.append_message(convo_id, second)

        conversation = store.get_conversation(convo_id)
        assert [m.text for m in conversation.messages] == ["hello", "hi"]
        assert conversation.last_message_at == second.created_at

    def test_append_to_missing_conversation_raises(self, store, messages_factory):
        with pytest.raises(ConversationNotFoundError) as exc_info:
            store.append_message("missing", messages_factory(["hi"])[0])
        assert exc_info.value.conversation_id == "missing"

    def test_returned_conversations_are_copies(self, store, messages_factory):
        convo_id = store.create_conversation("user1", messages_factory(["hello"])[0])

        loaded = store.get_conversation(convo_id)
        loaded.messages.clear()

        assert len(store.get_conversation(convo_id).messages) == 1

    def test_load_user_conversations_filters_by_owner(self, store, messages_factory):
        msg = messages_factory(["hello"])[0]
        mine = store.create_conversation("user1", msg)
        store.create_conversation("user2", msg)

        assert [c.id for c in store.load_user_conversations("user1")] == [mine]

    def test_list_conversations_orders_by_last_activity(
        self, store, messages_factory, base_time
    ):
        old = store.create_conversation(
            "user1", messages_factory(["old"], start=base_time)[0]
        )
        new = store.create_conversation(
            "user1", messages_factory(["new"], start=base_time + timedelta(hours=1))[0]
        )
        # Appending to the old conversation makes it the most recent.
        store.append_message(
            old, messages_factory(["bump"], start=base_time + timedelta(hours=2))[0]
        )

        summaries = store.list_conversations("user1")

        assert [s.id for s in summaries] == [old, new]
        assert summaries[0].title == "bump"
        assert summaries[0].last_message_text == "bump"

    def test_list_conversations_caps_results(self, store, messages_factory, base_time):
        for i in range(25):
            store.create_conversation(
                "user1",
                messages_factory([f"msg {i}"], start=base_time + timedelta(minutes=i))[0],
            )

        summaries = store.list_conversations("user1")

        assert len(summaries) == 20
        assert summaries[0].title == "msg 24"
        assert len(store.list_conversations("user1", limit=5)) == 5

    def test_list_conversations_is_idempotent(self, store, messages_factory, base_time):
        for i in range(3):
            store.create_conversation(
                "user1",
                messages_factory([f"msg {i}"], start=base_time + timedelta(minutes=i))[0],
            )

        assert store.list_conversations("user1") == store.list_conversations("user1")

    def test_custom_title_length(self, messages_factory):
        store = InMemory(title_length=5)
        store.create_conversation("user1", messages_factory(["abcdefgh"])[0])
        assert store.list_conversations("user1")[0].title == "abcde..."

    def test_create_user(self, store):
        store.create_user(User(uid="u1", email="a@example.com"))
        assert store.get_user("u1").email == "a@example.com"
        assert store.get_user("nobody") is None

    def test_untimed_messages_still_stamp_the_conversation(self, store):
        convo_id = store.create_conversation(
            "user1", Message(text="no clock", sender=USER_SENDER)
        )
        store.append_message(convo_id, Message(text="still none", sender=USER_SENDER))

        conversation = store.get_conversation(convo_id)
        assert conversation.last_message_at is not None
        assert [m.created_at for m in conversation.messages] == [None, None]

    def test_reads_keep_message_ids_stable(self, store):
        convo_id = store.create_conversation(
            "user1", Message(text="no id", sender=USER_SENDER)
        )

        first = store.get_conversation(convo_id).messages[0].id
        second = store.get_conversation(convo_id).messages[0].id

        assert first is None
        assert first == second


class TestFirestore:
    """Test the Firestore store against a mocked client."""

    @pytest.fixture
    def client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def store(self, client) -> Firestore:
        return Firestore(client=client)

    @staticmethod
    def snapshot(doc_id: str, data: Optional[dict], exists: bool = True) -> MagicMock:
        snap = MagicMock()
        snap.id = doc_id
        snap.exists = exists
        snap.to_dict.return_value = data
        return snap

    def test_injected_client_is_reused(self, store, client):
        assert store.client is client

    def test_create_user_writes_profile_document(self, store, client):
        store.create_user(
            User(uid="u1", email="a@example.com", display_name="Ada", photo_url=None)
        )

        client.collection.assert_called_with("users")
        client.collection.return_value.document.assert_called_with("u1")
        data = client.collection.return_value.document.return_value.set.call_args[0][0]
        assert data["uid"] == "u1"
        assert data["displayName"] == "Ada"
        assert data["photoURL"] is None
        assert data["createdAt"] is firestore.SERVER_TIMESTAMP

    def test_create_conversation(self, store, client, messages_factory):
        ref = client.collection.return_value.document.return_value
        ref.id = "generated-id"
        first = messages_factory(["hello"])[0]

        convo_id = store.create_conversation("user1", first)

        assert convo_id == "generated-id"
        client.collection.assert_called_with("conversations")
        data = ref.set.call_args[0][0]
        assert data["userId"] == "user1"
        assert data["createdAt"] is firestore.SERVER_TIMESTAMP
        assert data["lastMessageAt"] is firestore.SERVER_TIMESTAMP
        assert data["messages"] == [first.model_dump(by_alias=True)]

    def test_append_message_uses_array_union(self, store, client, messages_factory):
        message = messages_factory(["hi"])[0]

        store.append_message("c1", message)

        client.collection.return_value.document.assert_called_with("c1")
        update = client.collection.return_value.document.return_value.update
        data = update.call_args[0][0]
        assert isinstance(data["messages"], firestore.ArrayUnion)
        assert data["messages"].values == [message.model_dump(by_alias=True)]
        assert data["lastMessageAt"] is firestore.SERVER_TIMESTAMP

    def test_append_to_missing_conversation(self, store, client, messages_factory):
        client.collection.return_value.document.return_value.update.side_effect = (
            google_exceptions.NotFound("No document to update")
        )

        with pytest.raises(ConversationNotFoundError) as exc_info:
            store.append_message("gone", messages_factory(["hi"])[0])
        assert exc_info.value.conversation_id == "gone"

    def test_backend_failure_is_store_unavailable(self, store, client, messages_factory):
        client.collection.return_value.document.return_value.set.side_effect = (
            google_exceptions.ServiceUnavailable("down")
        )

        with pytest.raises(StoreUnavailableError):
            store.create_conversation("user1", messages_factory(["hi"])[0])

    def test_get_conversation(self, store, client, base_time):
        client.collection.return_value.document.return_value.get.return_value = (
            self.snapshot(
                "c1",
                {
                    "userId": "user1",
                    "createdAt": base_time,
                    "lastMessageAt": base_time,
                    "messages": [
                        {"text": "hello", "sender": "user", "createdAt": base_time}
                    ],
                },
            )
        )

        conversation = store.get_conversation("c1")

        assert conversation.id == "c1"
        assert conversation.user_id == "user1"
        assert conversation.messages[0].sender == USER_SENDER

    def test_id_less_message_documents_load_the_same_twice(self, store, client, base_time):
        client.collection.return_value.document.return_value.get.return_value = (
            self.snapshot(
                "c1",
                {
                    "userId": "user1",
                    "createdAt": base_time,
                    "lastMessageAt": base_time,
                    "messages": [{"text": "hello", "sender": "user"}],
                },
            )
        )

        first = store.get_conversation("c1").messages[0]
        second = store.get_conversation("c1").messages[0]

        assert first.id is None
        assert first.created_at is None
        assert first == second

    def test_get_user(self, store, client, base_time):
        client.collection.return_value.document.return_value.get.return_value = (
            self.snapshot(
                "u1",
                {"email": "a@example.com", "displayName": "Ada", "createdAt": base_time},
            )
        )

        user = store.get_user("u1")

        client.collection.assert_called_with("users")
        client.collection.return_value.document.assert_called_with("u1")
        assert user.uid == "u1"
        assert user.display_name == "Ada"

    def test_get_missing_user(self, store, client):
        client.collection.return_value.document.return_value.get.return_value = (
            self.snapshot("u1", None, exists=False)
        )
        assert store.get_user("u1") is None

    def test_get_missing_conversation(self, store, client):
        client.collection.return_value.document.return_value.get.return_value = (
            self.snapshot("c1", None, exists=False)
        )
        assert store.get_conversation("c1") is None

    def test_load_user_conversations_queries_by_owner(self, store, client, base_time):
        query = client.collection.return_value.where.return_value
        query.stream.return_value = iter(
            [
                self.snapshot(
                    "c1",
                    {"userId": "user1", "createdAt": base_time, "lastMessageAt": base_time},
                )
            ]
        )

        conversations = store.load_user_conversations("user1")

        field_filter = client.collection.return_value.where.call_args.kwargs["filter"]
        assert field_filter.field_path == "userId"
        assert field_filter.value == "user1"
        assert [c.id for c in conversations] == ["c1"]
        assert conversations[0].messages == []

    def test_client_initialization_failure(self, monkeypatch):
        def broken_client(**kwargs):
            raise RuntimeError("no credentials")

        monkeypatch.setattr(firestore, "Client", broken_client)

        with pytest.raises(StoreUnavailableError):
            Firestore(project="demo").client
