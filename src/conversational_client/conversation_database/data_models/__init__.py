from conversational_client.conversation_database.data_models.conversation import Conversation
from conversational_client.conversation_database.data_models.message import Feedback, Message, Sender
from conversational_client.conversation_database.data_models.user import User

__all__ = [
    "Conversation",
    "Feedback",
    "Message",
    "Sender",
    "User",
]
