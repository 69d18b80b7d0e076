"""Domain interfaces for persistence and identity."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

# (field, op, value); op is "==" or "array-contains"
Filter = Tuple[str, str, Any]

FILTER_OPS = ("==", "array-contains")


def matches_filters(data: Dict[str, Any], filters: List[Filter]) -> bool:
    """Evaluate document-store filters against one document."""
    for field, op, value in filters:
        if op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {op}")
        current = data.get(field)
        if op == "==" and current != value:
            return False
        if op == "array-contains" and (not isinstance(current, list) or value not in current):
            return False
    return True


class DocumentStore(ABC):
    """Opaque collection/document store.

    Documents are plain JSON-compatible dicts. ``set`` with ``merge=True``
    updates top-level keys only.
    """

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str: pass
    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: pass
    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None: pass
    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool: pass
    @abstractmethod
    def query(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, Dict[str, Any]]]: pass
    @abstractmethod
    def list_ids(self, collection: str) -> List[str]: pass
    @abstractmethod
    def ping(self) -> bool: pass


@dataclass(frozen=True)
class Identity:
    """Verified user as reported by the identity provider."""
    uid: str
    email: Optional[str] = None
    role: Optional[str] = None


class IdentityError(Exception):
    """Token could not be verified."""


class IdentityProvider(ABC):
    @abstractmethod
    def verify_token(self, token: str) -> Identity:
        """Verify an ID/session token. Raises IdentityError."""
        ...

    @abstractmethod
    def lookup_by_email(self, email: str) -> Optional[Identity]:
        ...
