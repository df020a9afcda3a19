# passgate/db/memory.py
import copy
from typing import Any, AsyncIterator, Dict, Optional, Tuple

from passgate.db.store import DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """Process-local store for tests and local development.

    Documents are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    async def _read(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        doc = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def _write(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    async def _remove(self, collection: str, doc_id: str) -> bool:
        return self._collections.get(collection, {}).pop(doc_id, None) is not None

    async def _iterate(self, collection: str) -> AsyncIterator[Tuple[str, Dict[str, Any]]]:
        for doc_id, doc in list(self._collections.get(collection, {}).items()):
            yield doc_id, copy.deepcopy(doc)

    async def ping(self) -> bool:
        return True

    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Synchronous insert, used by fixtures and local bootstrapping."""
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(
            {k: v for k, v in data.items() if k != "id"}
        )
