# passgate/crud/crud_audit_log.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from passgate.db.store import DocumentStore
from passgate.utils.documents import utcnow

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = frozenset({
    "amount",
    "qrCode",
    "token",
    "signature",
    "secret",
    "password",
    "cashfreeOrderId",
    "paymentId",
})

REDACTED = "[REDACTED]"

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def sanitize(value: Any) -> Any:
    """Redact sensitive keys and make a snapshot JSON-friendly, recursively."""
    if isinstance(value, dict):
        return {
            k: (REDACTED if k in SENSITIVE_KEYS else sanitize(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [sanitize(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class CRUDAuditLog:
    """
    CRUD operations for admin audit log entries.

    Note: This is a special CRUD class that only allows create and read operations.
    Audit logs are immutable and cannot be updated or deleted.
    """

    def __init__(self, collection: str):
        self.collection = collection

    async def get(self, store: DocumentStore, *, id: str) -> Optional[Dict[str, Any]]:
        """Get an audit log entry by ID."""
        return await store.get(self.collection, id)

    async def log_action(
        self,
        store: DocumentStore,
        *,
        admin_id: str,
        action: str,
        target_collection: str,
        target_id: str,
        previous_data: Optional[Dict[str, Any]] = None,
        new_data: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Convenience method to log an action."""
        entry = {
            "adminId": admin_id,
            "action": action,
            "targetCollection": target_collection,
            "targetId": target_id,
            "previousData": sanitize(previous_data) if previous_data is not None else None,
            "newData": sanitize(new_data) if new_data is not None else None,
            "ipAddress": ip_address,
            "timestamp": utcnow(),
        }
        entry_id = await store.add(self.collection, entry)
        logger.info(f"Audit: {admin_id} {action} {target_collection}/{target_id}")
        return {**entry, "id": entry_id}

    async def get_recent(self, store: DocumentStore, *, limit: int = 50) -> List[Dict[str, Any]]:
        """Get recent audit logs, newest first."""
        return await store.query(
            self.collection, "timestamp", ">=", EPOCH,
            limit=limit, order_by="timestamp", descending=True,
        )


audit_log = CRUDAuditLog("admin_logs")
