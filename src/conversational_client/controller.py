"""
Conversational client controller (Facade).

'ConversationalClientController' is the single entry point for the chat
client's state. It binds to an identity provider, owns the signed-in user's
'ConversationStore' and the active conversation's 'MessageLog', runs reply
requests through a 'ReplyService', and mirrors every change into the injected
'KeyValueStorage'.

Reply requests are tracked per conversation: each one gets a 'PendingReply'
record with its own 'CancellationToken', and at most one record exists per
conversation id. A request captures the user id, conversation id and message
history when it starts and carries them through the await, so the user can
switch, create or delete conversations while it runs. When it completes, the
result is always persisted under the conversation it belongs to, but only shown
if that conversation is still the active one ("focused"). A cancelled token is
final: its request records nothing, whatever the reply service returns.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from conversational_client.auth.base import IdentityProvider
from conversational_client.conversation_database.conversation_store import ConversationStore
from conversational_client.conversation_database.data_models.conversation import Conversation
from conversational_client.conversation_database.data_models.message import Feedback, Message, Sender
from conversational_client.conversation_database.data_models.user import User
from conversational_client.conversation_database.keys import PREFERRED_LANGUAGE_KEY
from conversational_client.conversation_database.message_log import MessageLog
from conversational_client.errors import ConversationNotFoundError, MissingUserMessageError, NotAuthenticatedError
from conversational_client.replies.base import ReplyCancelledError, ReplyService
from conversational_client.storage.base import KeyValueStorage, load_json
from conversational_client.utils.cancellation import CancellationToken
from conversational_client.utils.database import generate_uid
from conversational_client.utils.time import get_current_timestamp

DEFAULT_LANGUAGE = "en"
SEND_ERROR_MESSAGE = "Sorry, I couldn't process your request. Please try again."
REGENERATE_ERROR_MESSAGE = "Sorry, I couldn't regenerate a response. Please try again."


@dataclass(eq=False)
class PendingReply:
    conversation_id: str
    token: CancellationToken = field(default_factory=CancellationToken)


class ConversationalClientController:
    def __init__(
        self,
        storage: KeyValueStorage,
        reply_service: ReplyService,
        identity: IdentityProvider | None = None,
        default_language: str = DEFAULT_LANGUAGE,
    ):
        self.storage = storage
        self.reply_service = reply_service
        self.default_language = default_language
        self.conversation_store = ConversationStore(storage)
        self.message_log = MessageLog(storage)
        self._pending: dict[str, PendingReply] = {}
        self._unsubscribe: Callable[[], None] | None = None
        if identity is not None:
            self.bind_identity(identity)

    # State

    @property
    def user_id(self) -> str | None:
        return self.conversation_store.user_id

    @property
    def conversations(self) -> list[Conversation]:
        return list(self.conversation_store.conversations)

    @property
    def active_conversation(self) -> Conversation | None:
        return self.conversation_store.active

    @property
    def messages(self) -> list[Message]:
        return list(self.message_log.messages)

    @property
    def last_user_message(self) -> str:
        return self.message_log.last_user_message

    @property
    def is_loading(self) -> bool:
        """Whether the active conversation is waiting for a reply."""
        active = self.conversation_store.active
        return active is not None and active.id in self._pending

    def is_pending(self, conversation_id: str) -> bool:
        return conversation_id in self._pending

    def _require_user(self) -> str:
        if self.conversation_store.user_id is None:
            raise NotAuthenticatedError("No user is signed in")
        return self.conversation_store.user_id

    def _is_focused(self, user_id: str, conversation_id: str) -> bool:
        active = self.conversation_store.active
        return self.conversation_store.user_id == user_id and active is not None and active.id == conversation_id

    # Identity

    def bind_identity(self, identity: IdentityProvider) -> None:
        """Follow 'identity' from now on, starting with its current state."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = identity.subscribe(self.handle_identity_change)
        self.handle_identity_change(identity.current_user, identity.is_authenticated)

    def handle_identity_change(self, user: User | None, is_authenticated: bool) -> None:
        if not is_authenticated or user is None:
            self._teardown()
            return
        if user.id == self.conversation_store.user_id:
            return
        if self.conversation_store.user_id is not None:
            self._teardown()

        active = self.conversation_store.load(user.id)
        if active is None:
            self.create_conversation()
        else:
            self.message_log.load(user.id, active.id)

    def _teardown(self) -> None:
        self._cancel_all("signed out")
        self.conversation_store.clear()
        self.message_log.clear()

    def close(self) -> None:
        """Stop following the identity provider and drop all in-memory state."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._teardown()

    # Preferences

    @property
    def preferred_language(self) -> str:
        return load_json(self.storage, PREFERRED_LANGUAGE_KEY, str | None, None) or self.default_language

    def set_preferred_language(self, language: str) -> None:
        self.storage.set(PREFERRED_LANGUAGE_KEY, language)

    # Conversations

    def create_conversation(self, base: list[Conversation] | None = None) -> Conversation:
        conversation = self.conversation_store.create(base)
        self.message_log.clear(conversation.id)
        return conversation

    def rename_conversation_from_first_message(self, conversation_id: str, text: str) -> Conversation | None:
        return self.conversation_store.rename_from_first_message(conversation_id, text)

    def set_active_conversation(self, conversation: Conversation | str) -> Conversation:
        user_id = self._require_user()
        conversation_id = conversation if isinstance(conversation, str) else conversation.id
        target = self.conversation_store.get(conversation_id)
        if target is None:
            raise ConversationNotFoundError(conversation_id)
        if self.conversation_store.set_active(target):
            self.message_log.load(user_id, target.id)
        return target

    def delete_conversation(self, conversation_id: str) -> None:
        user_id = self._require_user()
        self._cancel(conversation_id, "conversation deleted")
        active_changed = self.conversation_store.remove(conversation_id)
        self.message_log.remove(user_id, conversation_id)
        if active_changed:
            active = self.conversation_store.active
            self.message_log.load(user_id, active.id if active else None)
        logger.info(f"Deleted conversation {conversation_id}")

    def delete_all_conversations(self) -> Conversation:
        self._require_user()
        self._cancel_all("all conversations deleted")
        self.message_log.clear()
        self.conversation_store.delete_all()
        return self.create_conversation([])

    # Replies

    def _start_pending(self, conversation_id: str) -> PendingReply:
        previous = self._pending.get(conversation_id)
        if previous is not None:
            logger.debug(f"Superseding pending reply for conversation {conversation_id}")
            previous.token.cancel("superseded")
        record = PendingReply(conversation_id)
        self._pending[conversation_id] = record
        return record

    def _finish_pending(self, record: PendingReply) -> None:
        if self._pending.get(record.conversation_id) is record:
            del self._pending[record.conversation_id]

    def _cancel(self, conversation_id: str, reason: str) -> bool:
        record = self._pending.pop(conversation_id, None)
        if record is None:
            return False
        record.token.cancel(reason)
        logger.debug(f"Cancelled pending reply for conversation {conversation_id}: {reason}")
        return True

    def _cancel_all(self, reason: str) -> None:
        for conversation_id in list(self._pending):
            self._cancel(conversation_id, reason)

    async def send_message(self, content: str) -> Message | None:
        """
        Send 'content' to the active conversation, creating one if needed.

        Returns the assistant reply, the error placeholder if the reply failed,
        or None if the request was cancelled.
        """
        user_id = self._require_user()
        conversation = self.conversation_store.active or self.create_conversation()
        conversation_id = conversation.id
        history = list(self.message_log.messages)
        record = self._start_pending(conversation_id)

        user_message = Message(
            id=generate_uid(),
            content=content,
            sender=Sender.USER,
            timestamp=get_current_timestamp(),
        )
        messages = [*history, user_message]
        try:
            self.message_log.write(user_id, conversation_id, messages)
            if not history:
                self.rename_conversation_from_first_message(conversation_id, content)
        except Exception:
            self._finish_pending(record)
            raise

        if self._is_focused(user_id, conversation_id):
            self.message_log.show(conversation_id, messages)
            self.message_log.last_user_message = content

        return await self._request_reply(
            record,
            user_id,
            content=content,
            history=history,
            base=messages,
            error_text=SEND_ERROR_MESSAGE,
        )

    async def regenerate_response(self, message_id: str) -> Message | None:
        """
        Replace the assistant message 'message_id' with a fresh reply.

        The reply is requested for the closest user message before it; the
        regenerated message and everything after it are dropped first.
        """
        user_id = self._require_user()
        conversation = self.conversation_store.active
        if conversation is None:
            return None
        messages = list(self.message_log.messages)
        index = self.message_log.find(message_id)
        if index == -1 or not messages[index].is_assistant:
            return None

        user_index = next((i for i in range(index - 1, -1, -1) if messages[i].sender == Sender.USER), -1)
        if user_index < 0:
            raise MissingUserMessageError(message_id)
        user_message = messages[user_index]

        # Drops the message and everything after it; for the last message that is the message alone.
        truncated = messages[:index]
        record = self._start_pending(conversation.id)
        try:
            self.message_log.write(user_id, conversation.id, truncated)
        except Exception:
            self._finish_pending(record)
            raise
        self.message_log.show(conversation.id, truncated)

        return await self._request_reply(
            record,
            user_id,
            content=user_message.content,
            history=truncated[:user_index],
            base=truncated,
            error_text=REGENERATE_ERROR_MESSAGE,
            update_last_user_message=True,
        )

    async def _request_reply(
        self,
        record: PendingReply,
        user_id: str,
        content: str,
        history: Sequence[Message],
        base: Sequence[Message],
        error_text: str,
        update_last_user_message: bool = False,
    ) -> Message | None:
        conversation_id = record.conversation_id
        language = self.preferred_language
        try:
            result = await self.reply_service.reply(conversation_id, content, list(history), language, record.token)
            record.token.raise_if_cancelled()

            assistant_message = Message(
                id=generate_uid(),
                content=result.message,
                sender=Sender.ASSISTANT,
                timestamp=get_current_timestamp(),
                language=language,
            )
            # Feedback given while the reply was pending is only in storage, carry it over.
            persisted_feedback = {
                message.id: message.feedback for message in self.message_log.read(user_id, conversation_id)
            }
            final_messages = [
                *(
                    message.model_copy(update={"feedback": persisted_feedback[message.id]})
                    if persisted_feedback.get(message.id, message.feedback) != message.feedback
                    else message
                    for message in base
                ),
                assistant_message,
            ]
            if self.conversation_store.user_id == user_id:
                self.conversation_store.touch(conversation_id)
            self.message_log.write(user_id, conversation_id, final_messages)
            if self._is_focused(user_id, conversation_id):
                self.message_log.show(conversation_id, final_messages)
                if update_last_user_message:
                    self.message_log.last_user_message = content
            return assistant_message
        except ReplyCancelledError:
            logger.debug(f"Reply for conversation {conversation_id} cancelled")
            return None
        except Exception:
            if record.token.cancelled:
                logger.debug(f"Reply for conversation {conversation_id} failed after cancellation, ignoring")
                return None
            logger.exception(f"Error getting a reply for conversation {conversation_id}")

            error_message = Message(
                id=generate_uid(),
                content=error_text,
                sender=Sender.ASSISTANT,
                timestamp=get_current_timestamp(),
                is_error=True,
            )
            # The in-memory snapshot may be stale if the user navigated away, re-read what was persisted.
            messages = [*self.message_log.read(user_id, conversation_id), error_message]
            self.message_log.write(user_id, conversation_id, messages)
            if self._is_focused(user_id, conversation_id):
                self.message_log.show(conversation_id, messages)
            return error_message
        finally:
            self._finish_pending(record)

    def stop_response(self, conversation_id: str | None = None) -> bool:
        """Cancel the pending reply of 'conversation_id' (default: the active one)."""
        if conversation_id is None:
            active = self.conversation_store.active
            if active is None:
                return False
            conversation_id = active.id
        return self._cancel(conversation_id, "stopped")

    # Annotators

    def provide_message_feedback(self, message_id: str, feedback: Feedback | str) -> Message | None:
        conversation = self.conversation_store.active
        index = self.message_log.find(message_id)
        if conversation is None or index == -1 or not self.message_log.messages[index].is_assistant:
            return None
        user_id = self._require_user()

        feedback = Feedback(feedback)
        messages = list(self.message_log.messages)
        messages[index] = messages[index].model_copy(update={"feedback": feedback})
        self.message_log.write(user_id, conversation.id, messages)
        self.message_log.show(conversation.id, messages)
        logger.info(f"Feedback for message {message_id}: {feedback}")
        return messages[index]
