"""
Identity provider abstractions.

An 'IdentityProvider' tells the controller who is signed in. The controller
never authenticates anyone itself: it only needs a stable user ID to namespace
storage keys and a signal when the user signs in or out, which it receives by
subscribing a listener.

Concrete implementations: 'SessionIdentityProvider'.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from conversational_client.conversation_database.data_models.user import User

IdentityListener = Callable[[User | None, bool], None]


class IdentityProvider(ABC):
    """
    Abstract base class for identity sources.

    Implementors must call every subscribed listener with
    '(current_user, is_authenticated)' after each transition.
    """

    def __init__(self) -> None:
        self._listeners: list[IdentityListener] = []

    @property
    @abstractmethod
    def current_user(self) -> User | None:
        pass

    @property
    @abstractmethod
    def is_authenticated(self) -> bool:
        pass

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register 'listener' and return a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.current_user, self.is_authenticated)
