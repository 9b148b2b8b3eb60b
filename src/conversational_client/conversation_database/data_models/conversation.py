"""
Conversation data model.

Conversations are persisted per user as one ordered JSON list under the
'<user_id>_conversations' key. Newer conversations are prepended, so the list
reads newest-first, but nothing in the storage layer enforces that order.
"""

from datetime import datetime

from pydantic import BaseModel


class Conversation(BaseModel):
    """A titled thread owned by a user.

    'timestamp' records the last activity (creation or the latest assistant
    reply), not the creation time.
    """

    id: str
    title: str
    timestamp: datetime
    user_id: str
