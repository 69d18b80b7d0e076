import pytest
from typing import Dict, Optional
from fastapi.testclient import TestClient

from vaultbox.adapters.memory_store.stores import MemoryDocumentStore
from vaultbox.dependencies import (
    get_client_log_buffer,
    get_document_store,
    get_field_cipher,
    get_identity_provider,
    reset_runtime,
)
from vaultbox.domain.client_logs import ClientLogBuffer
from vaultbox.domain.crypto.field_cipher import FieldCipher
from vaultbox.domain.interfaces import Identity, IdentityError, IdentityProvider
from vaultbox.main import app

TEST_MASTER_KEY = "test-master-key-0123456789abcdef"

ALICE = Identity(uid="uid-alice", email="alice@example.com")
BOB = Identity(uid="uid-bob", email="bob@example.com")
CAROL = Identity(uid="uid-carol", email="carol@example.com")

# ID tokens must be at least 50 characters for POST /auth/session
ALICE_TOKEN = "alice-" + "a" * 60
BOB_TOKEN = "bob-" + "b" * 60
CAROL_TOKEN = "carol-" + "c" * 60


class FakeIdentityProvider(IdentityProvider):
    """Maps fixed tokens to identities; stands in for the external provider."""

    def __init__(self, tokens: Dict[str, Identity]):
        self.tokens = tokens

    def verify_token(self, token: str) -> Identity:
        if token not in self.tokens:
            raise IdentityError("Invalid token")
        return self.tokens[token]

    def lookup_by_email(self, email: str) -> Optional[Identity]:
        for identity in self.tokens.values():
            if identity.email and identity.email.lower() == email.strip().lower():
                return identity
        return None


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def clear_overrides():
    """Automatically clear FastAPI dependency overrides before each test."""
    app.dependency_overrides = {}
    reset_runtime()
    yield
    app.dependency_overrides = {}
    reset_runtime()


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def cipher():
    return FieldCipher(TEST_MASTER_KEY)


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider({ALICE_TOKEN: ALICE, BOB_TOKEN: BOB, CAROL_TOKEN: CAROL})


@pytest.fixture
def log_buffer():
    return ClientLogBuffer()


@pytest.fixture
def client(store, cipher, identity_provider, log_buffer):
    app.dependency_overrides[get_document_store] = lambda: store
    app.dependency_overrides[get_field_cipher] = lambda: cipher
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_client_log_buffer] = lambda: log_buffer
    return TestClient(app)


@pytest.fixture
def alice():
    return auth_header(ALICE_TOKEN)


@pytest.fixture
def bob():
    return auth_header(BOB_TOKEN)


@pytest.fixture
def carol():
    return auth_header(CAROL_TOKEN)


@pytest.fixture
def alice_token():
    return ALICE_TOKEN
