"""Memory Store Implementation (DEV and tests)."""
import copy
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from vaultbox.domain.interfaces import DocumentStore, Filter, matches_filters
from vaultbox.utils.id import uuid7

logger = logging.getLogger(__name__)


class MemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._collections: Dict[str, Dict[str, dict]] = {}
        self._lock = threading.Lock()

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid7()
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(data) if data is not None else None

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        with self._lock:
            docs = self._collections.setdefault(collection, {})
            if merge and doc_id in docs:
                docs[doc_id].update(copy.deepcopy(data))
            else:
                docs[doc_id] = copy.deepcopy(data)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._collections.get(collection, {}).pop(doc_id, None) is not None

    def query(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            items = [
                (doc_id, copy.deepcopy(data))
                for doc_id, data in self._collections.get(collection, {}).items()
                if matches_filters(data, filters or [])
            ]
        if order_by:
            items.sort(key=lambda item: str(item[1].get(order_by) or ""), reverse=descending)
        if limit is not None:
            items = items[:limit]
        return items

    def list_ids(self, collection: str) -> List[str]:
        with self._lock:
            return list(self._collections.get(collection, {}).keys())

    def ping(self) -> bool:
        return True
