import asyncio
from types import SimpleNamespace

import pytest

from conversational_client.conversation_database.data_models.message import Message, Sender
from conversational_client.llms.base import LLM, LLMMessage, Roles
from conversational_client.llms.openai import OpenAILLM
from conversational_client.replies.base import ReplyCancelledError
from conversational_client.replies.llm import LLMReplyService
from conversational_client.utils.cancellation import CancellationToken
from conversational_client.utils.time import get_current_timestamp

from .fakes import settle


class RecordingLLM(LLM):
    def __init__(self, content: str = "answer") -> None:
        self.content = content
        self.conversations: list[list[LLMMessage]] = []
        self.release = asyncio.Event()
        self.block = False
        self.cancelled = False

    async def generate(self, conversation: list[LLMMessage]) -> LLMMessage:
        self.conversations.append(conversation)
        if self.block:
            try:
                await self.release.wait()
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        return LLMMessage(content=self.content, role=Roles.ASSISTANT)


def make_history() -> list[Message]:
    now = get_current_timestamp()
    return [
        Message(id="1", content="Hello", sender=Sender.USER, timestamp=now),
        Message(id="2", content="Hi!", sender=Sender.ASSISTANT, timestamp=now),
        Message(id="3", content="Hello again", sender=Sender.USER, timestamp=now),
        Message(id="4", content="Sorry, failed", sender=Sender.ASSISTANT, timestamp=now, is_error=True),
    ]


class TestLLMReplyService:
    @pytest.mark.asyncio
    async def test_builds_conversation_from_history(self):
        llm = RecordingLLM()
        service = LLMReplyService(llm, system_prompt="Be brief.")

        result = await service.reply("c1", "Third try", make_history(), "fr", CancellationToken())

        assert result.message == "answer"
        conversation = llm.conversations[0]
        assert conversation[0].role == Roles.SYSTEM
        assert "Be brief." in conversation[0].content
        assert "'fr'" in conversation[0].content
        assert [(m.role, m.content) for m in conversation[1:]] == [
            (Roles.USER, "Hello"),
            (Roles.ASSISTANT, "Hi!"),
            (Roles.USER, "Hello again"),
            (Roles.USER, "Third try"),
        ]

    @pytest.mark.asyncio
    async def test_cancellation_interrupts_generation(self):
        llm = RecordingLLM()
        llm.block = True
        token = CancellationToken()
        task = asyncio.create_task(LLMReplyService(llm).reply("c1", "Hello", [], "en", token))
        await settle()

        token.cancel("stopped")

        with pytest.raises(ReplyCancelledError):
            await task
        await settle()
        assert llm.cancelled

    @pytest.mark.asyncio
    async def test_already_cancelled_token(self):
        llm = RecordingLLM()
        token = CancellationToken()
        token.cancel()

        with pytest.raises(ReplyCancelledError):
            await LLMReplyService(llm).reply("c1", "Hello", [], "en", token)
        assert llm.conversations == []

    @pytest.mark.asyncio
    async def test_backend_errors_propagate(self):
        class FailingLLM(LLM):
            async def generate(self, conversation: list[LLMMessage]) -> LLMMessage:
                raise ConnectionError("unreachable")

        with pytest.raises(ConnectionError):
            await LLMReplyService(FailingLLM()).reply("c1", "Hello", [], "en", CancellationToken())


class TestCancellationToken:
    def test_first_reason_wins(self):
        token = CancellationToken()
        assert not token.cancelled
        token.cancel("stopped")
        token.cancel("deleted")
        assert token.cancelled
        assert token.reason == "stopped"

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel()
        with pytest.raises(ReplyCancelledError):
            token.raise_if_cancelled()


class TestOpenAILLM:
    @pytest.mark.asyncio
    async def test_generate_maps_messages(self):
        requests = []

        async def create(**kwargs):
            requests.append(kwargs)
            return SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content="Bonjour"))],
                usage=None,
            )

        llm = OpenAILLM(model_name="gpt-4o-mini", openai_api_key="test-key")
        llm.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

        response = await llm.generate(
            [LLMMessage(role=Roles.SYSTEM, content="sys"), LLMMessage(role=Roles.USER, content="Hello")]
        )

        assert response == LLMMessage(role=Roles.ASSISTANT, content="Bonjour")
        assert requests[0]["model"] == "gpt-4o-mini"
        assert requests[0]["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "Hello"},
        ]
