import pytest

from conversational_client.conversation_database.conversation_store import (
    DEFAULT_CONVERSATION_TITLE,
    ConversationStore,
    derive_title,
)
from conversational_client.errors import ConversationNotFoundError, NotAuthenticatedError


@pytest.fixture
def store(storage) -> ConversationStore:
    store = ConversationStore(storage)
    assert store.load("alice") is None
    return store


class TestDeriveTitle:
    @pytest.mark.parametrize("text", ["", "Hello", "x" * 30])
    def test_short_text_is_kept(self, text):
        assert derive_title(text) == text

    def test_long_text_is_truncated(self):
        text = "a" * 25 + "bcdefghij"
        assert derive_title(text) == "a" * 25 + "bcdef..."


class TestConversationStore:
    def test_create_prepends_and_persists(self, store, storage):
        first = store.create()
        second = store.create()

        assert [c.id for c in store.conversations] == [second.id, first.id]
        assert store.active == second
        assert second.title == DEFAULT_CONVERSATION_TITLE
        assert [c["id"] for c in storage.get("alice_conversations")] == [second.id, first.id]
        assert storage.get("alice_activeConversation") == second.id

    def test_create_on_explicit_base(self, store):
        store.create()
        fresh = store.create(base=[])
        assert store.conversations == [fresh]

    def test_create_requires_user(self, storage):
        with pytest.raises(NotAuthenticatedError):
            ConversationStore(storage).create()

    def test_rename_updates_list_active_and_storage(self, store, storage):
        conversation = store.create()
        store.rename_from_first_message(conversation.id, "What is the weather like today in Bern?")

        assert store.active.title == "What is the weather like today..."
        assert store.conversations[0].title == store.active.title
        assert storage.get("alice_conversations")[0]["title"] == store.active.title

    def test_rename_unknown_conversation(self, store):
        assert store.rename_from_first_message("missing", "Hello") is None

    def test_set_active_unknown_conversation(self, store):
        conversation = store.create()
        store.remove(conversation.id)
        with pytest.raises(ConversationNotFoundError):
            store.set_active(conversation)

    def test_set_active_reports_change(self, store):
        first = store.create()
        store.create()
        assert store.set_active(first)
        assert not store.set_active(first)

    def test_remove_active_picks_first_remaining(self, store, storage):
        first = store.create()
        second = store.create()

        assert store.remove(second.id)
        assert store.active == first
        assert storage.get("alice_activeConversation") == first.id

        assert store.remove(first.id)
        assert store.active is None
        assert storage.get("alice_activeConversation") is None

    def test_reload_round_trip(self, store, storage):
        store.create()
        second = store.create()
        conversations = store.conversations

        reloaded = ConversationStore(storage)
        assert reloaded.load("alice") == second
        assert reloaded.conversations == conversations
