"""Dependency Injection Module."""
import logging
from typing import Optional

from fastapi import Depends

from vaultbox.adapters.memory_store.stores import MemoryDocumentStore
from vaultbox.adapters.sql.stores import SqlDocumentStore
from vaultbox.domain.audit import AuditLogger
from vaultbox.domain.auth import JwtIdentityProvider
from vaultbox.domain.client_logs import ClientLogBuffer
from vaultbox.domain.crypto.field_cipher import ConfigurationError, FieldCipher
from vaultbox.domain.crypto.policy import FieldPolicy
from vaultbox.domain.interfaces import DocumentStore, IdentityProvider
from vaultbox.settings import Settings, get_settings

logger = logging.getLogger(__name__)

MIN_MASTER_KEY_LENGTH = 16

# Process-wide singletons, built once by init_runtime() or lazily on first use
_store: Optional[DocumentStore] = None
_cipher: Optional[FieldCipher] = None
_client_logs: Optional[ClientLogBuffer] = None
_identity: Optional[IdentityProvider] = None


def load_master_secret(settings: Settings) -> str:
    """Return the configured master secret or fail fast."""
    master = settings.MASTER_ENCRYPTION_KEY
    if not master:
        raise ConfigurationError("MASTER_ENCRYPTION_KEY must be set")
    if len(master) < MIN_MASTER_KEY_LENGTH:
        raise ConfigurationError(
            f"MASTER_ENCRYPTION_KEY must be at least {MIN_MASTER_KEY_LENGTH} characters"
        )
    return master


def build_store(settings: Settings) -> DocumentStore:
    backend = settings.STORE_BACKEND.lower()
    if backend == "memory":
        if settings.is_prod:
            logger.warning("Using in-memory document store in production; data will not persist")
        return MemoryDocumentStore()
    if backend == "sql":
        return SqlDocumentStore.from_url(settings.DATABASE_URL)
    raise ConfigurationError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


def init_runtime(settings: Settings) -> None:
    """Build cipher and store at startup. ConfigurationError is fatal."""
    global _store, _cipher, _identity
    _cipher = FieldCipher(load_master_secret(settings))
    _store = build_store(settings)
    _identity = None
    logger.info(f"Runtime initialized (store backend: {settings.STORE_BACKEND})")


def reset_runtime() -> None:
    global _store, _cipher, _client_logs, _identity
    _store = None
    _cipher = None
    _client_logs = None
    _identity = None


def get_document_store(settings: Settings = Depends(get_settings)) -> DocumentStore:
    global _store
    if _store is None:
        _store = build_store(settings)
    return _store


def get_field_cipher(settings: Settings = Depends(get_settings)) -> FieldCipher:
    global _cipher
    if _cipher is None:
        _cipher = FieldCipher(load_master_secret(settings))
    return _cipher


def get_field_policy(cipher: FieldCipher = Depends(get_field_cipher)) -> FieldPolicy:
    return FieldPolicy(cipher)


def get_identity_provider(
    store: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings),
) -> IdentityProvider:
    # Kept across requests so the JWKS cache survives
    global _identity
    if _identity is None:
        _identity = JwtIdentityProvider(
            store,
            jwks_url=settings.AUTH_JWKS_URL,
            issuer=settings.AUTH_ISSUER,
            audience=settings.AUTH_AUDIENCE,
            secret=settings.AUTH_SECRET,
        )
    return _identity


def get_audit_logger(store: DocumentStore = Depends(get_document_store)) -> AuditLogger:
    return AuditLogger(store)


def get_client_log_buffer() -> ClientLogBuffer:
    global _client_logs
    if _client_logs is None:
        _client_logs = ClientLogBuffer()
    return _client_logs
