"""SqlDocumentStore - Database-backed document storage.

Filtering and ordering happen in Python over the collection's rows, which
keeps the store portable across SQLite and Postgres JSON types.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vaultbox.adapters.sql.models import Base, Document
from vaultbox.domain.interfaces import DocumentStore, Filter, matches_filters
from vaultbox.utils.id import uuid7

logger = logging.getLogger(__name__)


def create_store_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection so every session sees the same database
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True, pool_size=10, pool_timeout=5)


class SqlDocumentStore(DocumentStore):
    def __init__(self, engine: Engine, create_tables: bool = True):
        self._engine = engine
        self._session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        if create_tables:
            Base.metadata.create_all(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "SqlDocumentStore":
        return cls(create_store_engine(database_url))

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid7()
        with self._session() as db:
            db.add(Document(collection=collection, id=doc_id, data=dict(data)))
            db.commit()
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._session() as db:
            doc = db.get(Document, (collection, doc_id))
            return dict(doc.data) if doc else None

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        with self._session() as db:
            doc = db.get(Document, (collection, doc_id))
            if doc is None:
                db.add(Document(collection=collection, id=doc_id, data=dict(data)))
            elif merge:
                # Reassign so the JSON column is flagged dirty
                doc.data = {**doc.data, **data}
            else:
                doc.data = dict(data)
            db.commit()

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._session() as db:
            doc = db.get(Document, (collection, doc_id))
            if doc is None:
                return False
            db.delete(doc)
            db.commit()
            return True

    def query(
        self,
        collection: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, Dict[str, Any]]]:
        with self._session() as db:
            rows = db.execute(
                select(Document).where(Document.collection == collection)
            ).scalars().all()
            items = [
                (row.id, dict(row.data))
                for row in rows
                if matches_filters(row.data, filters or [])
            ]
        if order_by:
            items.sort(key=lambda item: str(item[1].get(order_by) or ""), reverse=descending)
        if limit is not None:
            items = items[:limit]
        return items

    def list_ids(self, collection: str) -> List[str]:
        with self._session() as db:
            return list(db.execute(
                select(Document.id).where(Document.collection == collection)
            ).scalars().all())

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Document store ping failed: {e}")
            return False
