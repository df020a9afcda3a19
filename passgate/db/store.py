# passgate/db/store.py
"""
Document store interface.

The store is a key-addressable collection store: per-document get/set/update,
bounded unordered scans and single-field predicate queries. Anything richer
(multi-field filters, sorting, pagination, joins) happens in application code.

Documents are plain dicts. Reads return a copy with the document id under
"id"; writes ignore an "id" key in the payload.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Set, Tuple

from passgate.core.exceptions import MissingIndexError

logger = logging.getLogger(__name__)

QUERY_OPERATORS = ("==", "<", "<=", ">", ">=", "array_contains")


class StoreError(Exception):
    """Network/backend failure or an invalid write (e.g. update of a missing doc)."""


def _matches(doc: Dict[str, Any], field: str, op: str, value: Any) -> bool:
    if field not in doc or doc[field] is None:
        return False
    current = doc[field]
    if op == "==":
        return current == value
    if op == "array_contains":
        return isinstance(current, list) and value in current
    try:
        if op == "<":
            return current < value
        if op == "<=":
            return current <= value
        if op == ">":
            return current > value
        if op == ">=":
            return current >= value
    except TypeError:
        # Mixed types never match a range predicate
        return False
    return False


class DocumentStore(ABC):
    """Abstract async document store.

    Subclasses provide raw point reads/writes and iteration over a
    collection; scans, queries and counts are built on top of those here.
    """

    def __init__(
        self,
        batch_size: int = 100,
        composite_indexes: Optional[Iterable[Tuple[str, str, str]]] = None,
    ):
        self.batch_size = max(1, batch_size)
        # (collection, filter_field, order_by_field)
        self.composite_indexes: Set[Tuple[str, str, str]] = set(composite_indexes or ())

    # ---- primitives ----

    @abstractmethod
    async def _read(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def _write(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def _remove(self, collection: str, doc_id: str) -> bool:
        ...

    @abstractmethod
    def _iterate(self, collection: str) -> AsyncIterator[Tuple[str, Dict[str, Any]]]:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        return None

    # ---- public API ----

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        if not doc_id:
            return None
        data = await self._read(collection, doc_id)
        if data is None:
            return None
        return {**data, "id": doc_id}

    async def get_many(self, collection: str, doc_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Concurrent point lookups in waves of batch_size.

        Ids are deduplicated; only documents that exist are returned.
        """
        unique_ids = list(dict.fromkeys(i for i in doc_ids if i))
        found: Dict[str, Dict[str, Any]] = {}
        for start in range(0, len(unique_ids), self.batch_size):
            wave = unique_ids[start:start + self.batch_size]
            docs = await asyncio.gather(*(self.get(collection, doc_id) for doc_id in wave))
            for doc_id, doc in zip(wave, docs):
                if doc is not None:
                    found[doc_id] = doc
        return found

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        payload = {k: v for k, v in data.items() if k != "id"}
        await self._write(collection, doc_id, payload)

    async def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Merge changes into an existing document and return the merged document."""
        current = await self._read(collection, doc_id)
        if current is None:
            raise StoreError(f"Cannot update missing document {collection}/{doc_id}")
        merged = {**current, **{k: v for k, v in changes.items() if k != "id"}}
        await self._write(collection, doc_id, merged)
        return {**merged, "id": doc_id}

    async def delete(self, collection: str, doc_id: str) -> bool:
        return await self._remove(collection, doc_id)

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        await self.set(collection, doc_id, data)
        return doc_id

    async def scan(self, collection: str, limit: int) -> List[Dict[str, Any]]:
        """Bounded, unordered window over a collection."""
        docs: List[Dict[str, Any]] = []
        if limit <= 0:
            return docs
        async for doc_id, data in self._iterate(collection):
            docs.append({**data, "id": doc_id})
            if len(docs) >= limit:
                break
        return docs

    async def query(
        self,
        collection: str,
        field: str,
        op: str,
        value: Any,
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """Single-field predicate query.

        Ordering by a field other than the filtered one requires a declared
        composite index, mirroring stores that refuse such queries otherwise.
        """
        if op not in QUERY_OPERATORS:
            raise ValueError(f"Unsupported query operator: {op}")
        if order_by and order_by != field and (collection, field, order_by) not in self.composite_indexes:
            raise MissingIndexError(collection, [field, order_by])

        docs: List[Dict[str, Any]] = []
        async for doc_id, data in self._iterate(collection):
            if _matches(data, field, op, value):
                docs.append({**data, "id": doc_id})
                if limit is not None and not order_by and len(docs) >= limit:
                    break

        if order_by:
            present = [d for d in docs if d.get(order_by) is not None]
            present.sort(key=lambda d: d[order_by], reverse=descending)
            docs = present
        if limit is not None:
            docs = docs[:limit]
        return docs

    async def count(
        self,
        collection: str,
        field: Optional[str] = None,
        op: Optional[str] = None,
        value: Any = None,
    ) -> int:
        total = 0
        async for _, data in self._iterate(collection):
            if field is None or _matches(data, field, op or "==", value):
                total += 1
        return total


_store: Optional[DocumentStore] = None


def set_store(store: Optional[DocumentStore]) -> None:
    global _store
    _store = store


def get_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide store."""
    if _store is None:
        raise StoreError("Document store not initialised. Call init_store() on startup.")
    return _store
