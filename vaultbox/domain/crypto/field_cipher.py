"""Field-level authenticated encryption.

Every sensitive string value (passwords, connection strings, notes) is
encrypted on its own with AES-256-GCM under a key derived per value:

    field_key = HKDF-SHA256(ikm=SHA256(master), salt=salt, info=FIELD_KEY_INFO)

The serialized blob is self-describing and is the only thing persisted:

    <b64 salt>:<b64 nonce>:<b64 tag>:<b64 ciphertext>

Error messages raised from this module never carry plaintext, blob
contents, derived keys or master secret material.
"""
import base64
import binascii
import hashlib
import os
from typing import List, Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

FIELD_KEY_INFO = b"vault-field-key-v1"

KEY_LENGTH = 32
SALT_LENGTH = 16
NONCE_LENGTH = 12
TAG_LENGTH = 16

BLOB_DELIMITER = ":"
BLOB_COMPONENTS = 4

MasterSecret = Union[str, bytes]


class FieldCipherError(Exception):
    """Base class for field cipher failures."""


class ConfigurationError(FieldCipherError):
    """Master secret is missing or unusable. Fatal at startup."""


class MalformedBlobError(FieldCipherError):
    """Stored value does not parse as a four-part field blob."""


class AuthenticationFailedError(FieldCipherError):
    """Blob failed authentication (tampered, corrupted or wrong master secret)."""


def _normalize_master(master_secret: Optional[MasterSecret]) -> bytes:
    if master_secret is None:
        raise ConfigurationError("MASTER_ENCRYPTION_KEY missing")
    if isinstance(master_secret, str):
        master_secret = master_secret.encode("utf-8")
    if not master_secret:
        raise ConfigurationError("MASTER_ENCRYPTION_KEY is empty")
    # Fixed 32-byte input keying material regardless of operator secret length
    return hashlib.sha256(master_secret).digest()


def _hkdf(normalized_master: bytes, salt: bytes) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        info=FIELD_KEY_INFO,
    ).derive(normalized_master)


def derive_field_key(master_secret: Optional[MasterSecret], salt: bytes) -> bytes:
    """Derive the 256-bit key for one stored value.

    Deterministic: the same (master_secret, salt) pair always yields the
    same key.

    Raises:
        ConfigurationError: if master_secret is missing or empty.
    """
    return _hkdf(_normalize_master(master_secret), salt)


def _b64decode(component: str) -> bytes:
    try:
        return base64.b64decode(component.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError):
        raise MalformedBlobError("Encrypted field component is not valid base64") from None


def _split_blob(blob: str) -> List[bytes]:
    if not isinstance(blob, str):
        raise MalformedBlobError("Encrypted field must be a string")

    parts = blob.split(BLOB_DELIMITER)
    if len(parts) != BLOB_COMPONENTS:
        raise MalformedBlobError(
            f"Encrypted field must have {BLOB_COMPONENTS} components, got {len(parts)}"
        )

    salt_b64, nonce_b64, tag_b64, data_b64 = parts
    # The ciphertext of an empty plaintext is zero bytes long
    if not salt_b64 or not nonce_b64 or not tag_b64:
        raise MalformedBlobError("Encrypted field has an empty component")

    return [_b64decode(p) for p in parts]


class FieldCipher:
    """AES-256-GCM cipher for individual string fields.

    Holds only the SHA-256 digest of the master secret; every call is
    independent, so one instance can be shared across threads and requests.
    """

    def __init__(self, master_secret: Optional[MasterSecret]):
        self._master = _normalize_master(master_secret)

    def derive_key(self, salt: bytes) -> bytes:
        return _hkdf(self._master, salt)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt one value. Defined for every string, including ``""``."""
        salt = os.urandom(SALT_LENGTH)
        nonce = os.urandom(NONCE_LENGTH)

        ct_and_tag = AESGCM(self.derive_key(salt)).encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext = ct_and_tag[:-TAG_LENGTH]
        tag = ct_and_tag[-TAG_LENGTH:]

        return BLOB_DELIMITER.join(
            base64.b64encode(part).decode("ascii")
            for part in (salt, nonce, tag, ciphertext)
        )

    def decrypt(self, blob: str) -> str:
        """Decrypt a blob produced by :meth:`encrypt`.

        Raises:
            MalformedBlobError: wrong component count or bad base64.
            AuthenticationFailedError: the tag does not verify. No partial
                plaintext is ever returned.
        """
        salt, nonce, tag, ciphertext = _split_blob(blob)

        # Structurally valid but impossible sizes cannot authenticate
        if len(salt) != SALT_LENGTH or len(nonce) != NONCE_LENGTH or len(tag) != TAG_LENGTH:
            raise AuthenticationFailedError("Encrypted field failed authentication")

        try:
            plain = AESGCM(self.derive_key(salt)).decrypt(nonce, ciphertext + tag, None)
        except InvalidTag:
            raise AuthenticationFailedError("Encrypted field failed authentication") from None

        try:
            return plain.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedBlobError("Encrypted field is not UTF-8 text") from None


def encrypt_field(plaintext: Optional[str], master_secret: MasterSecret) -> Optional[str]:
    """Encrypt ``plaintext``; ``None`` and ``""`` are treated as no value."""
    if plaintext is None or plaintext == "":
        return None
    return FieldCipher(master_secret).encrypt(plaintext)


def decrypt_field(blob: Optional[str], master_secret: MasterSecret) -> Optional[str]:
    """Decrypt ``blob``; a missing blob decrypts to ``None``."""
    if blob is None or blob == "":
        return None
    return FieldCipher(master_secret).decrypt(blob)
