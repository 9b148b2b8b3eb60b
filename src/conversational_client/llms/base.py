"""
Core LLM abstractions and message data models.

'LLMReplyService' talks to a language model through the 'LLM' ABC only, so the
backend ('OpenAILLM' or anything OpenAI-compatible behind a custom base URL)
can be swapped at construction time. 'LLMMessage' is deliberately
backend-agnostic and separate from the persisted 'Message' record.
"""

from abc import ABC, abstractmethod
from enum import StrEnum

from pydantic import BaseModel


class Roles(StrEnum):
    """Conversation roles as used by the OpenAI chat completions API."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LLMMessage(BaseModel):
    """A single message in a conversation sent to or received from an LLM."""

    content: str = ""
    role: Roles = Roles.ASSISTANT


class LLM(ABC):
    """Abstract base class for language model backends."""

    @abstractmethod
    async def generate(self, conversation: list[LLMMessage]) -> LLMMessage:
        """Return a single complete response for the given conversation."""
        pass
