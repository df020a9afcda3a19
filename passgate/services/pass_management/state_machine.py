"""
Pass lifecycle.

    paid --markUsed--> used --revertUsed--> paid

`archived` is an orthogonal soft-delete flag that can be toggled from either
status. A pass counts as used when status == "used" OR usedAt is set, so
half-migrated documents are never scanned in twice.

The transition functions are pure: they take the current document and return
the field changes to write. PassStateMachine applies them to the store and
writes one audit entry per transition.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from passgate.crud import audit_log, pass_doc
from passgate.db.store import DocumentStore
from passgate.schemas.token import AdminContext
from passgate.utils.documents import utcnow

logger = logging.getLogger(__name__)

STATUS_PAID = "paid"
STATUS_USED = "used"


class InvalidTransitionError(ValueError):
    """The requested transition is not allowed from the pass's current state."""


def is_used(doc: Dict[str, Any]) -> bool:
    return doc.get("status") == STATUS_USED or bool(doc.get("usedAt"))


def mark_used_changes(doc: Dict[str, Any], actor_id: str, now: datetime) -> Dict[str, Any]:
    if is_used(doc):
        raise InvalidTransitionError("Pass is already marked as used")
    return {"status": STATUS_USED, "usedAt": now, "scannedBy": actor_id}


def revert_used_changes(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not is_used(doc):
        raise InvalidTransitionError("Pass is not marked as used")
    return {"status": STATUS_PAID, "usedAt": None, "scannedBy": None}


def status_changes(status: str, actor_id: str, now: datetime) -> Dict[str, Any]:
    """Unguarded status overwrite used by the admin edit form."""
    if status == STATUS_USED:
        return {"status": STATUS_USED, "usedAt": now, "scannedBy": actor_id}
    if status == STATUS_PAID:
        return {"status": STATUS_PAID, "usedAt": None, "scannedBy": None}
    raise InvalidTransitionError(f"Unknown pass status: {status}")


def archive_changes(archived: bool, actor_id: str, now: datetime) -> Dict[str, Any]:
    if archived:
        return {"isArchived": True, "archivedAt": now, "archivedBy": actor_id}
    return {"isArchived": False, "archivedAt": None, "archivedBy": None}


class PassStateMachine:
    """Applies pass transitions against the store with audit logging."""

    def __init__(self, store: DocumentStore, now: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._now = now or utcnow

    async def _apply(
        self,
        pass_id: str,
        admin: AdminContext,
        action: str,
        compute: Callable[[Dict[str, Any]], Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        current = await pass_doc.get(self.store, pass_id)
        if current is None:
            return None
        changes = compute(current)
        updated = await pass_doc.update(self.store, id=pass_id, changes=changes)
        await audit_log.log_action(
            self.store,
            admin_id=admin.user_id,
            action=action,
            target_collection="passes",
            target_id=pass_id,
            previous_data=current,
            new_data=updated,
            ip_address=admin.ip_address,
        )
        logger.info(f"Pass {pass_id}: {action} by {admin.user_id}")
        return updated

    async def mark_used(self, pass_id: str, admin: AdminContext, action: str = "markUsed") -> Optional[Dict[str, Any]]:
        """Consume the pass. Returns None if the pass does not exist."""
        return await self._apply(
            pass_id, admin, action,
            lambda doc: mark_used_changes(doc, admin.user_id, self._now()),
        )

    async def revert_used(self, pass_id: str, admin: AdminContext, action: str = "revertUsed") -> Optional[Dict[str, Any]]:
        """Undo an accidental or duplicate scan."""
        return await self._apply(pass_id, admin, action, revert_used_changes)

    async def set_archived(
        self, pass_id: str, archived: bool, admin: AdminContext, action: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        return await self._apply(
            pass_id, admin, action or ("archive" if archived else "unarchive"),
            lambda doc: archive_changes(archived, admin.user_id, self._now()),
        )

    async def update(
        self,
        pass_id: str,
        admin: AdminContext,
        *,
        status: Optional[str] = None,
        is_archived: Optional[bool] = None,
        extra: Optional[Dict[str, Any]] = None,
        action: str = "update-pass",
    ) -> Optional[Dict[str, Any]]:
        """Partial edit: optional status overwrite, archive toggle and plain field changes."""

        def compute(doc: Dict[str, Any]) -> Dict[str, Any]:
            now = self._now()
            changes: Dict[str, Any] = dict(extra or {})
            if status is not None:
                changes.update(status_changes(status, admin.user_id, now))
            if is_archived is not None:
                changes.update(archive_changes(is_archived, admin.user_id, now))
            return changes

        return await self._apply(pass_id, admin, action, compute)

    async def hard_delete(self, pass_id: str, admin: AdminContext, action: str = "delete") -> bool:
        """Remove the pass document entirely. Returns False if it did not exist."""
        current = await pass_doc.get(self.store, pass_id)
        if current is None:
            return False
        await pass_doc.remove(self.store, id=pass_id)
        await audit_log.log_action(
            self.store,
            admin_id=admin.user_id,
            action=action,
            target_collection="passes",
            target_id=pass_id,
            previous_data=current,
            new_data={"deleted": True},
            ip_address=admin.ip_address,
        )
        logger.warning(f"Pass {pass_id} hard-deleted by {admin.user_id}")
        return True
