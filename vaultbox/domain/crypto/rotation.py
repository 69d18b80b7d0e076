"""Master key rotation.

Blobs carry no key identifier, so changing MASTER_ENCRYPTION_KEY means
walking every stored blob once: decrypt under the old master, encrypt
under the new one.
"""
import logging
from typing import Dict, Iterable, Optional, Tuple

from vaultbox.domain.crypto.field_cipher import FieldCipher, FieldCipherError
from vaultbox.domain.interfaces import DocumentStore
from vaultbox.domain.records import ENCRYPTED_FIELDS

logger = logging.getLogger(__name__)


class ReencryptionService:
    """Re-encrypts registered fields from one master secret to another."""

    def __init__(
        self,
        store: DocumentStore,
        old_cipher: FieldCipher,
        new_cipher: FieldCipher,
        fields: Optional[Dict[str, Iterable[str]]] = None,
    ):
        self.store = store
        self.old_cipher = old_cipher
        self.new_cipher = new_cipher
        self.fields = fields if fields is not None else ENCRYPTED_FIELDS

    def reencrypt_document(self, collection: str, doc_id: str) -> Tuple[int, int]:
        """Rotate one document in place.

        Returns (rotated_fields, failed_fields). The document is written back
        only if at least one field rotated; failed fields keep their old blob.
        """
        doc = self.store.get(collection, doc_id)
        if doc is None:
            return 0, 0

        patch = {}
        failed = 0
        for name in self.fields.get(collection, ()):
            blob = doc.get(name)
            if not blob:
                continue
            try:
                plaintext = self.old_cipher.decrypt(blob)
            except FieldCipherError as e:
                failed += 1
                logger.warning(f"Could not decrypt {collection}/{doc_id} field {name}: {type(e).__name__}")
                continue
            patch[name] = self.new_cipher.encrypt(plaintext)

        if patch:
            self.store.set(collection, doc_id, patch, merge=True)
        return len(patch), failed

    def run(self) -> Tuple[int, int, int]:
        """Walk every registered collection.

        Returns:
            A tuple of (scanned_documents, rotated_fields, failed_fields).
        """
        scanned = rotated = failed = 0
        for collection in self.fields:
            for doc_id in self.store.list_ids(collection):
                scanned += 1
                r, f = self.reencrypt_document(collection, doc_id)
                rotated += r
                failed += f
            logger.info(f"Re-encrypted collection {collection}")

        logger.info(f"Re-encryption finished: scanned={scanned} rotated={rotated} failed={failed}")
        return scanned, rotated, failed
