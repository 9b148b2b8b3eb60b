"""Exceptions raised by the conversational client."""


class ConversationalClientError(Exception):
    """Base class for every error raised by the client."""


class NotAuthenticatedError(ConversationalClientError):
    """An operation needed a signed-in user but none was available."""


class ConversationNotFoundError(ConversationalClientError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation with id {conversation_id} not found")
        self.conversation_id = conversation_id


class MissingUserMessageError(ConversationalClientError):
    """An assistant message had no user message before it."""

    def __init__(self, message_id: str):
        super().__init__(f"No user message found before assistant message {message_id}")
        self.message_id = message_id
