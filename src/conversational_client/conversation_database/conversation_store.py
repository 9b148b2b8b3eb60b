"""
Conversation store.

'ConversationStore' holds the signed-in user's conversations and the active
conversation pointer, and mirrors both into storage: the full list under
'<user_id>_conversations' and the active id under
'<user_id>_activeConversation'. It only ever writes whole lists. The active
pointer is kept pointing at a conversation of the current list, or None.
"""

from loguru import logger

from conversational_client.conversation_database.data_models.conversation import Conversation
from conversational_client.conversation_database.keys import (
    active_conversation_key,
    conversations_key,
    user_prefix,
)
from conversational_client.errors import ConversationNotFoundError, NotAuthenticatedError
from conversational_client.storage.base import KeyValueStorage, load_json, save_json
from conversational_client.utils.database import generate_uid
from conversational_client.utils.time import get_current_timestamp

DEFAULT_CONVERSATION_TITLE = "New Conversation"
TITLE_MAX_LENGTH = 30


def derive_title(text: str) -> str:
    if len(text) > TITLE_MAX_LENGTH:
        return f"{text[:TITLE_MAX_LENGTH]}..."
    return text


class ConversationStore:
    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.user_id: str | None = None
        self.conversations: list[Conversation] = []
        self.active: Conversation | None = None

    def _require_user(self) -> str:
        if self.user_id is None:
            raise NotAuthenticatedError("No user is signed in")
        return self.user_id

    def _persist(self) -> None:
        save_json(self.storage, conversations_key(self._require_user()), self.conversations, list[Conversation])

    def _persist_active(self) -> None:
        user_id = self._require_user()
        if self.active is None:
            self.storage.remove(active_conversation_key(user_id))
        else:
            self.storage.set(active_conversation_key(user_id), self.active.id)

    def get(self, conversation_id: str) -> Conversation | None:
        return next((conv for conv in self.conversations if conv.id == conversation_id), None)

    def load(self, user_id: str) -> Conversation | None:
        """
        Load 'user_id's conversations and resolve the active one.

        The stored active id wins if it still names a conversation, otherwise
        the first conversation is used. Returns None when the user has no
        conversations at all; the caller is expected to create one.
        """
        self.user_id = user_id
        self.conversations = load_json(self.storage, conversations_key(user_id), list[Conversation], [])
        active_id = load_json(self.storage, active_conversation_key(user_id), str | None, None)

        active = self.get(active_id) if active_id else None
        if active is None and self.conversations:
            active = self.conversations[0]
        self.active = active
        logger.debug(
            f"Loaded {len(self.conversations)} conversations for {user_id}, "
            f"active: {active.id if active else None}"
        )
        return active

    def clear(self) -> None:
        self.user_id = None
        self.conversations = []
        self.active = None

    def create(self, base: list[Conversation] | None = None) -> Conversation:
        """Prepend a fresh conversation to 'base' (or the current list) and make it active."""
        user_id = self._require_user()
        conversation = Conversation(
            id=generate_uid(),
            title=DEFAULT_CONVERSATION_TITLE,
            timestamp=get_current_timestamp(),
            user_id=user_id,
        )
        self.conversations = [conversation, *(self.conversations if base is None else base)]
        self.active = conversation
        self._persist()
        self._persist_active()
        logger.info(f"Created conversation {conversation.id} for {user_id}")
        return conversation

    def _replace(self, conversation: Conversation) -> None:
        self.conversations = [conversation if conv.id == conversation.id else conv for conv in self.conversations]
        if self.active is not None and self.active.id == conversation.id:
            self.active = conversation
        self._persist()

    def rename_from_first_message(self, conversation_id: str, text: str) -> Conversation | None:
        conversation = self.get(conversation_id)
        if conversation is None:
            return None
        renamed = conversation.model_copy(update={"title": derive_title(text)})
        self._replace(renamed)
        return renamed

    def touch(self, conversation_id: str) -> Conversation | None:
        """Bump the conversation's activity timestamp."""
        conversation = self.get(conversation_id)
        if conversation is None:
            return None
        touched = conversation.model_copy(update={"timestamp": get_current_timestamp()})
        self._replace(touched)
        return touched

    def set_active(self, conversation: Conversation) -> bool:
        """Make 'conversation' active. Returns False if it already was."""
        if self.active is not None and self.active.id == conversation.id:
            return False
        current = self.get(conversation.id)
        if current is None:
            raise ConversationNotFoundError(conversation.id)
        self.active = current
        self._persist_active()
        return True

    def remove(self, conversation_id: str) -> bool:
        """Remove a conversation. Returns True if the active conversation changed."""
        self.conversations = [conv for conv in self.conversations if conv.id != conversation_id]
        self._persist()
        if self.active is None or self.active.id != conversation_id:
            return False
        self.active = self.conversations[0] if self.conversations else None
        self._persist_active()
        return True

    def delete_all(self) -> list[str]:
        """Forget every conversation and remove all of the user's persisted keys."""
        user_id = self._require_user()
        self.conversations = []
        self.active = None
        removed = self.storage.remove_prefix(user_prefix(user_id))
        logger.info(f"Removed {len(removed)} stored keys for {user_id}")
        return removed
