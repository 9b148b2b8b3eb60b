"""
Message log of the active conversation.

'MessageLog' owns the visible messages together with the 'last_user_message'
shortcut, and reads/writes per-conversation message lists. Writes always
replace the whole list under '<user_id>_messages_<conversation_id>'; there is
no incremental persistence, so callers must pass the complete post-mutation
sequence.
"""

from collections.abc import Sequence

from loguru import logger

from conversational_client.conversation_database.data_models.message import Message, Sender
from conversational_client.conversation_database.keys import messages_key
from conversational_client.storage.base import KeyValueStorage, load_json, save_json


def last_user_content(messages: Sequence[Message]) -> str:
    return next((message.content for message in reversed(messages) if message.sender == Sender.USER), "")


class MessageLog:
    def __init__(self, storage: KeyValueStorage):
        self.storage = storage
        self.conversation_id: str | None = None
        self.messages: list[Message] = []
        self.last_user_message = ""

    def read(self, user_id: str, conversation_id: str) -> list[Message]:
        return load_json(self.storage, messages_key(user_id, conversation_id), list[Message], [])

    def write(self, user_id: str, conversation_id: str, messages: Sequence[Message]) -> None:
        save_json(self.storage, messages_key(user_id, conversation_id), list(messages), list[Message])

    def remove(self, user_id: str, conversation_id: str) -> None:
        self.storage.remove(messages_key(user_id, conversation_id))

    def load(self, user_id: str | None, conversation_id: str | None) -> list[Message]:
        if user_id is None or conversation_id is None:
            self.clear()
            return self.messages
        self.conversation_id = conversation_id
        self.messages = self.read(user_id, conversation_id)
        self.last_user_message = last_user_content(self.messages)
        logger.debug(f"Loaded {len(self.messages)} messages for conversation {conversation_id}")
        return self.messages

    def show(self, conversation_id: str, messages: Sequence[Message]) -> None:
        self.conversation_id = conversation_id
        self.messages = list(messages)

    def clear(self, conversation_id: str | None = None) -> None:
        self.conversation_id = conversation_id
        self.messages = []
        self.last_user_message = ""

    def find(self, message_id: str) -> int:
        return next((index for index, message in enumerate(self.messages) if message.id == message_id), -1)
