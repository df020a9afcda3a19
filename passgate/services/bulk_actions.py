"""
Bulk mutation processor.

Applies one action to up to BULK_MAX_TARGETS documents of one collection.
Authorization is decided for the whole batch before anything is read. Each
id is then handled on its own: load, compute the new state, write, audit.
Ids that cannot be processed are reported back and do not abort the batch.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from passgate.core import admin_roles
from passgate.core.exceptions import ForbiddenError, ValidationError
from passgate.crud import audit_log
from passgate.db.store import DocumentStore
from passgate.schemas.bulk import BulkActionResponse, BulkItemError
from passgate.schemas.token import AdminContext
from passgate.services.pass_management.state_machine import (
    InvalidTransitionError,
    archive_changes,
    mark_used_changes,
    revert_used_changes,
)
from passgate.utils.documents import utcnow

logger = logging.getLogger(__name__)

PASS_ACTIONS = {"markUsed", "revertUsed", "softDelete", "delete"}


def is_authorized(action: str, collection: str, role: str) -> bool:
    """Permission matrix for bulk actions; unlisted combinations are refused."""
    if collection == "passes" and action in PASS_ACTIONS:
        return admin_roles.can_mutate_passes(role)
    if action == "softDelete":
        if collection == "teams":
            return admin_roles.can_mutate_teams(role)
        if collection in ("users", "payments", "events"):
            return admin_roles.can_mutate_users_payments_events(role)
        return False
    if action == "delete" and collection == "payments":
        return admin_roles.can_mutate_users_payments_events(role)
    if action == "forceVerifyPayment" and collection == "payments":
        return admin_roles.can_mutate_users_payments_events(role)
    if action in ("activateEvent", "deactivateEvent") and collection == "events":
        return admin_roles.can_mutate_users_payments_events(role)
    return False


class BulkActionProcessor:
    def __init__(
        self,
        store: DocumentStore,
        max_targets: int = 100,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.max_targets = max_targets
        self._now = now or utcnow

    async def apply(
        self,
        action: str,
        collection: str,
        target_ids: List[str],
        admin: AdminContext,
    ) -> BulkActionResponse:
        if not is_authorized(action, collection, admin.role):
            raise ForbiddenError()
        if len(target_ids) > self.max_targets:
            raise ValidationError(
                f"At most {self.max_targets} targets per bulk action", field="targetIds"
            )

        updated = 0
        errors: List[BulkItemError] = []
        for target_id in target_ids:
            try:
                error = await self._apply_one(action, collection, target_id, admin)
            except Exception as e:
                logger.error(f"Bulk {action} failed for {collection}/{target_id}: {e}", exc_info=True)
                error = "Update failed"
            if error:
                errors.append(BulkItemError(id=target_id, error=error))
            else:
                updated += 1

        logger.info(
            f"Bulk {action} on {collection} by {admin.user_id}: "
            f"{updated} updated, {len(errors)} skipped"
        )
        return BulkActionResponse(success=True, updated=updated, errors=errors or None)

    async def _apply_one(
        self, action: str, collection: str, target_id: str, admin: AdminContext
    ) -> Optional[str]:
        """Process one id. Returns an error message, or None on success."""
        previous = await self.store.get(collection, target_id)
        if previous is None:
            return "Not found"

        if action == "delete":
            await self.store.delete(collection, target_id)
            await self._audit("bulk-delete", collection, target_id, previous, {"deleted": True}, admin)
            return None

        try:
            changes = self._changes_for(action, previous, admin)
        except InvalidTransitionError as e:
            return str(e)

        changes["updatedAt"] = self._now()
        new_data = await self.store.update(collection, target_id, changes)
        await self._audit(f"bulk-{action}", collection, target_id, previous, new_data, admin)
        return None

    def _changes_for(self, action: str, previous: Dict[str, Any], admin: AdminContext) -> Dict[str, Any]:
        now = self._now()
        if action == "markUsed":
            try:
                return mark_used_changes(previous, admin.user_id, now)
            except InvalidTransitionError:
                raise InvalidTransitionError("Already used") from None
        if action == "revertUsed":
            try:
                return revert_used_changes(previous)
            except InvalidTransitionError:
                raise InvalidTransitionError("Not used") from None
        if action == "forceVerifyPayment":
            return {"status": "success", "fixedManually": True}
        if action == "softDelete":
            return archive_changes(True, admin.user_id, now)
        if action == "activateEvent":
            return {"isActive": True}
        if action == "deactivateEvent":
            return {"isActive": False}
        raise InvalidTransitionError("Invalid action/collection")

    async def _audit(
        self,
        action: str,
        collection: str,
        target_id: str,
        previous: Dict[str, Any],
        new_data: Dict[str, Any],
        admin: AdminContext,
    ) -> None:
        await audit_log.log_action(
            self.store,
            admin_id=admin.user_id,
            action=action,
            target_collection=collection,
            target_id=target_id,
            previous_data=previous,
            new_data=new_data,
            ip_address=admin.ip_address,
        )
