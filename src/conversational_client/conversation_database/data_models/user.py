"""
User data model.

The client never manages accounts itself: the identity provider hands over a
'User' whose 'id' namespaces every persisted key.
"""

from pydantic import BaseModel


class User(BaseModel):
    """A signed-in user, identified solely by their ID."""

    id: str
