import asyncio
from collections.abc import Sequence

from conversational_client.conversation_database.data_models.message import Message
from conversational_client.replies.base import ReplyCancelledError, ReplyResult, ReplyService
from conversational_client.storage.in_memory import InMemoryKeyValueStorage
from conversational_client.utils.cancellation import CancellationToken


class ReplyCall:
    def __init__(self, conversation_id, content, history, language, token) -> None:
        self.conversation_id = conversation_id
        self.content = content
        self.history = history
        self.language = language
        self.token = token
        self.future: asyncio.Future[str] = asyncio.get_running_loop().create_future()

    def resolve(self, message: str) -> None:
        self.future.set_result(message)

    def fail(self, exc: Exception) -> None:
        self.future.set_exception(exc)


class ScriptedReplyService(ReplyService):
    """
    Reply service driven by the test.

    With 'return_value' set every call answers immediately. Otherwise each call
    blocks until the test resolves or fails it through 'calls'. When
    'honor_cancellation' is False the service keeps waiting after the token is
    cancelled, like a backend that cannot be interrupted.
    """

    def __init__(self) -> None:
        self.return_value: str | None = None
        self.side_effect: Exception | None = None
        self.honor_cancellation = True
        self.calls: list[ReplyCall] = []

    async def reply(
        self,
        conversation_id: str,
        content: str,
        history: Sequence[Message],
        language: str,
        cancellation: CancellationToken,
    ) -> ReplyResult:
        call = ReplyCall(conversation_id, content, list(history), language, cancellation)
        self.calls.append(call)
        if self.side_effect is not None:
            raise self.side_effect
        if self.return_value is not None:
            return ReplyResult(message=self.return_value)

        if not self.honor_cancellation:
            return ReplyResult(message=await call.future)

        cancelled = asyncio.ensure_future(cancellation.wait())
        done, _ = await asyncio.wait({call.future, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        cancelled.cancel()
        if call.future not in done:
            raise ReplyCancelledError(cancellation.reason)
        return ReplyResult(message=call.future.result())


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


class FlakyMessageStorage(InMemoryKeyValueStorage):
    """In-memory storage whose message-list writes fail while 'failing' is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False

    def set(self, key: str, value) -> None:
        if self.failing and "_messages_" in key:
            raise OSError("disk full")
        super().set(key, value)
