"""
Message data model.

A conversation's messages are stored oldest-first as a single JSON list under
'<user_id>_messages_<conversation_id>'. The list only ever grows at the end or
is truncated; messages are never reordered.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class Sender(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class Feedback(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class Message(BaseModel):
    """
    A single message within a conversation.

    'language' is only set on assistant replies and records the language the
    reply was requested in. 'is_error' marks the synthetic apology message that
    replaces a failed reply.
    """

    id: str
    content: str
    sender: Sender
    timestamp: datetime
    language: str | None = None
    feedback: Feedback | None = None
    is_error: bool = False

    @property
    def is_assistant(self) -> bool:
        return self.sender == Sender.ASSISTANT
