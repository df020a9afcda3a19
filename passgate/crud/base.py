# passgate/crud/base.py
from typing import Any, Dict, Iterable, List, Optional

from passgate.db.store import DocumentStore
from passgate.utils.documents import utcnow


class CRUDDocument:
    """Generic CRUD over one document-store collection."""

    def __init__(self, collection: str):
        self.collection = collection

    async def get(self, store: DocumentStore, id: str) -> Optional[Dict[str, Any]]:
        return await store.get(self.collection, id)

    async def get_many(self, store: DocumentStore, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        return await store.get_many(self.collection, ids)

    async def create(
        self, store: DocumentStore, *, obj_in: Dict[str, Any], id: Optional[str] = None
    ) -> Dict[str, Any]:
        now = utcnow()
        data = {"createdAt": now, "updatedAt": now, **obj_in}
        if id is None:
            id = await store.add(self.collection, data)
        else:
            await store.set(self.collection, id, data)
        return {**data, "id": id}

    async def update(
        self, store: DocumentStore, *, id: str, changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        return await store.update(self.collection, id, {**changes, "updatedAt": utcnow()})

    async def remove(self, store: DocumentStore, *, id: str) -> bool:
        return await store.delete(self.collection, id)

    async def scan(self, store: DocumentStore, *, limit: int) -> List[Dict[str, Any]]:
        return await store.scan(self.collection, limit)

    async def count(self, store: DocumentStore, **predicate) -> int:
        return await store.count(self.collection, **predicate)
