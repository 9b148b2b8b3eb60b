import pytest

from conversational_client.auth.session import SessionIdentityProvider
from conversational_client.controller import ConversationalClientController
from conversational_client.storage.in_memory import InMemoryKeyValueStorage

from .fakes import ScriptedReplyService


@pytest.fixture
def storage() -> InMemoryKeyValueStorage:
    return InMemoryKeyValueStorage()


@pytest.fixture
def replies() -> ScriptedReplyService:
    return ScriptedReplyService()


@pytest.fixture
def identity() -> SessionIdentityProvider:
    return SessionIdentityProvider()


@pytest.fixture
def controller(storage, replies, identity) -> ConversationalClientController:
    controller = ConversationalClientController(storage, replies, identity)
    identity.sign_in("alice")
    return controller
