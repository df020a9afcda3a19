# passgate/crud/crud_payment.py
from typing import Any, Dict, List

from passgate.crud.base import CRUDDocument
from passgate.db.store import DocumentStore


class CRUDPayment(CRUDDocument):
    """CRUD operations for payments."""

    async def get_by_status(self, store: DocumentStore, *, status: str, limit: int) -> List[Dict[str, Any]]:
        return await store.query(self.collection, "status", "==", status, limit=limit)

    async def count_by_status(self, store: DocumentStore, *, status: str) -> int:
        return await store.count(self.collection, field="status", op="==", value=status)


payment = CRUDPayment("payments")
