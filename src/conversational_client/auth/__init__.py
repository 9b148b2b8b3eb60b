from conversational_client.auth.base import IdentityListener, IdentityProvider
from conversational_client.auth.session import SessionIdentityProvider

__all__ = [
    "IdentityListener",
    "IdentityProvider",
    "SessionIdentityProvider",
]
