"""
Persisted key layout.

Every key belonging to a user starts with '<user_id>_', which is what
'delete_all_conversations' relies on. The language preference is global.
"""

PREFERRED_LANGUAGE_KEY = "preferredLanguage"


def user_prefix(user_id: str) -> str:
    # Also matches ids that extend this one past an underscore ("alice" covers "alice_bob").
    return f"{user_id}_"


def conversations_key(user_id: str) -> str:
    return f"{user_id}_conversations"


def active_conversation_key(user_id: str) -> str:
    return f"{user_id}_activeConversation"


def messages_key(user_id: str, conversation_id: str) -> str:
    return f"{user_id}_messages_{conversation_id}"
