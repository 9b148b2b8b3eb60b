"""
State controller for interactive chat clients.

    from conversational_client import (
        ConversationalClientController, InMemoryKeyValueStorage, SessionIdentityProvider,
    )

    identity = SessionIdentityProvider()
    controller = ConversationalClientController(InMemoryKeyValueStorage(), reply_service, identity)
    identity.sign_in("alice")
    await controller.send_message("Hello")
"""

from conversational_client.auth import IdentityProvider, SessionIdentityProvider
from conversational_client.config import ClientSettings
from conversational_client.controller import ConversationalClientController, PendingReply
from conversational_client.conversation_database.data_models import Conversation, Feedback, Message, Sender, User
from conversational_client.errors import (
    ConversationalClientError,
    ConversationNotFoundError,
    MissingUserMessageError,
    NotAuthenticatedError,
)
from conversational_client.replies import LLMReplyService, ReplyCancelledError, ReplyResult, ReplyService
from conversational_client.storage import InMemoryKeyValueStorage, JSONFileKeyValueStorage, KeyValueStorage
from conversational_client.utils.cancellation import CancellationToken

__all__ = [
    "CancellationToken",
    "ClientSettings",
    "Conversation",
    "ConversationNotFoundError",
    "ConversationalClientController",
    "ConversationalClientError",
    "Feedback",
    "IdentityProvider",
    "InMemoryKeyValueStorage",
    "JSONFileKeyValueStorage",
    "KeyValueStorage",
    "LLMReplyService",
    "Message",
    "MissingUserMessageError",
    "NotAuthenticatedError",
    "PendingReply",
    "ReplyCancelledError",
    "ReplyResult",
    "ReplyService",
    "SessionIdentityProvider",
    "Sender",
    "User",
]
