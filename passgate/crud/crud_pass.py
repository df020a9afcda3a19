# passgate/crud/crud_pass.py
from typing import Any, Dict, List

from passgate.crud.base import CRUDDocument
from passgate.db.store import DocumentStore


class CRUDPass(CRUDDocument):
    """CRUD operations for passes."""

    async def created_between(
        self, store: DocumentStore, *, start, end, limit: int
    ) -> List[Dict[str, Any]]:
        """Passes with start <= createdAt < end (single-field range read)."""
        window = await store.query(
            self.collection, "createdAt", ">=", start, limit=None, order_by="createdAt"
        )
        return [p for p in window if p["createdAt"] < end][:limit]


pass_doc = CRUDPass("passes")
