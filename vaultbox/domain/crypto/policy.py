"""Null/empty handling around the field cipher.

The cipher is total over strings; the business rule that an empty value
means "nothing to protect" lives here, at the boundary.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from .field_cipher import (
    AuthenticationFailedError,
    FieldCipher,
    MalformedBlobError,
)

logger = logging.getLogger(__name__)

UNREADABLE_MALFORMED = "malformed"
UNREADABLE_AUTH_FAILED = "authentication_failed"


@dataclass(frozen=True)
class RevealedField:
    """Outcome of reading one stored field.

    ``value is None and not unreadable`` means nothing was ever stored;
    ``unreadable`` means something was stored but cannot be decrypted.
    """
    value: Optional[str] = None
    unreadable: bool = False
    reason: Optional[str] = None


class FieldPolicy:
    def __init__(self, cipher: FieldCipher):
        self.cipher = cipher

    def protect(self, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        return self.cipher.encrypt(value)

    def reveal(self, blob: Optional[str]) -> Optional[str]:
        if blob is None or blob == "":
            return None
        return self.cipher.decrypt(blob)

    def reveal_or_marker(
        self,
        blob: Optional[str],
        field: str = "?",
        record_id: Optional[str] = None,
    ) -> RevealedField:
        """Decrypt for display, turning per-field failures into markers."""
        try:
            return RevealedField(value=self.reveal(blob))
        except MalformedBlobError:
            logger.warning(f"Unreadable field {field} on record {record_id}: malformed blob")
            return RevealedField(unreadable=True, reason=UNREADABLE_MALFORMED)
        except AuthenticationFailedError:
            logger.warning(f"Unreadable field {field} on record {record_id}: authentication failed")
            return RevealedField(unreadable=True, reason=UNREADABLE_AUTH_FAILED)

    def protect_fields(self, data: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
        """Return a copy of ``data`` with each present field in ``fields`` encrypted."""
        out = dict(data)
        for name in fields:
            if name in out:
                out[name] = self.protect(out[name])
        return out

    def reveal_fields(
        self,
        doc: Dict[str, Any],
        fields: Iterable[str],
        record_id: Optional[str] = None,
    ) -> Dict[str, RevealedField]:
        return {
            name: self.reveal_or_marker(doc.get(name), field=name, record_id=record_id)
            for name in fields
        }
