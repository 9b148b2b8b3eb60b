"""
Reply service backed by an 'LLM'.

The persisted message history is mapped onto 'LLMMessage's (earlier error
placeholders are left out, they carry no information for the model) and a
system prompt asking for an answer in the requested language is prepended.
Generation runs as its own task raced against the cancellation token, so
'stop' takes effect immediately even when the backend is slow to answer.
"""

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING

from loguru import logger

from conversational_client.conversation_database.data_models.message import Message, Sender
from conversational_client.llms.base import LLM, LLMMessage, Roles
from conversational_client.replies.base import ReplyCancelledError, ReplyResult, ReplyService

if TYPE_CHECKING:
    from conversational_client.utils.cancellation import CancellationToken

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class LLMReplyService(ReplyService):
    def __init__(self, llm: LLM, system_prompt: str = DEFAULT_SYSTEM_PROMPT):
        self.llm = llm
        self.system_prompt = system_prompt

    def build_conversation(self, content: str, history: Sequence[Message], language: str) -> list[LLMMessage]:
        return [
            LLMMessage(role=Roles.SYSTEM, content=f"{self.system_prompt}\nAlways answer in the language '{language}'."),
            *[
                LLMMessage(
                    role=Roles.USER if message.sender == Sender.USER else Roles.ASSISTANT,
                    content=message.content,
                )
                for message in history
                if not message.is_error
            ],
            LLMMessage(role=Roles.USER, content=content),
        ]

    async def reply(
        self,
        conversation_id: str,
        content: str,
        history: Sequence[Message],
        language: str,
        cancellation: "CancellationToken",
    ) -> ReplyResult:
        cancellation.raise_if_cancelled()
        generation = asyncio.ensure_future(self.llm.generate(self.build_conversation(content, history, language)))
        cancelled = asyncio.ensure_future(cancellation.wait())
        try:
            done, _ = await asyncio.wait({generation, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            generation.cancel()
            raise
        finally:
            cancelled.cancel()

        if generation not in done:
            generation.cancel()
            logger.debug(f"Reply generation for conversation {conversation_id} cancelled")
            raise ReplyCancelledError(cancellation.reason)

        return ReplyResult(message=generation.result().content)
