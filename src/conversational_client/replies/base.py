"""
Reply service abstraction.

The reply service is the only network-facing collaborator of the controller:
given the conversation id, the new user message, the prior history and a
language tag it produces the assistant's reply. It receives the request's
'CancellationToken' and must raise 'ReplyCancelledError' when it gives up
because of it; every other exception is treated as a failed reply.

Concrete implementations: 'LLMReplyService'.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import BaseModel

from conversational_client.conversation_database.data_models.message import Message

if TYPE_CHECKING:
    from conversational_client.utils.cancellation import CancellationToken


class ReplyResult(BaseModel):
    message: str


class ReplyCancelledError(Exception):
    """The reply request was cancelled. Never shown to the user."""


class ReplyService(ABC):
    """Abstract producer of assistant replies."""

    @abstractmethod
    async def reply(
        self,
        conversation_id: str,
        content: str,
        history: Sequence[Message],
        language: str,
        cancellation: "CancellationToken",
    ) -> ReplyResult:
        pass
