from loguru import logger

from conversational_client.auth.base import IdentityProvider
from conversational_client.conversation_database.data_models.user import User


class SessionIdentityProvider(IdentityProvider):
    """In-process session: whoever called 'sign_in' last is the current user."""

    def __init__(self, user_id: str | None = None) -> None:
        super().__init__()
        self._user = User(id=user_id) if user_id else None

    @property
    def current_user(self) -> User | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def sign_in(self, user_id: str) -> User:
        if not user_id:
            raise ValueError("user_id must not be empty")
        self._user = User(id=user_id)
        logger.info(f"Signed in as {user_id}")
        self.notify()
        return self._user

    def sign_out(self) -> None:
        if self._user is None:
            return
        logger.info(f"Signed out {self._user.id}")
        self._user = None
        self.notify()
