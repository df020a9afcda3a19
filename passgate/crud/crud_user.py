# passgate/crud/crud_user.py
from typing import Any, Dict, Optional

from passgate.crud.base import CRUDDocument
from passgate.db.store import DocumentStore


class CRUDUser(CRUDDocument):
    """CRUD operations for user profiles."""

    async def get_by_email(self, store: DocumentStore, *, email: str) -> Optional[Dict[str, Any]]:
        matches = await store.query(self.collection, "email", "==", email.strip().lower(), limit=1)
        return matches[0] if matches else None


user = CRUDUser("users")
