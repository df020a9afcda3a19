"""
Admin edits to payments, users, events and teams.

Each edit loads the current document, writes the merged changes and records
one audit entry with the before/after snapshots. Missing documents come
back as None for the endpoint to turn into a 404.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from passgate.crud import audit_log, event, payment, team, user
from passgate.schemas.mutations import (
    EventUpdateRequest,
    PaymentUpdateRequest,
    TeamUpdateRequest,
    UserUpdateRequest,
)
from passgate.schemas.token import AdminContext
from passgate.db.store import DocumentStore
from passgate.services.pass_management.state_machine import archive_changes
from passgate.utils.documents import utcnow

logger = logging.getLogger(__name__)


def cleared_attendance() -> Dict[str, Any]:
    return {"checkedIn": False, "checkInTime": None, "checkedInBy": None}


class AdminRecordService:
    def __init__(self, store: DocumentStore, now: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._now = now or utcnow

    async def _audit(self, admin: AdminContext, action: str, collection: str, target_id: str, before, after) -> None:
        await audit_log.log_action(
            self.store,
            admin_id=admin.user_id,
            action=action,
            target_collection=collection,
            target_id=target_id,
            previous_data=before,
            new_data=after,
            ip_address=admin.ip_address,
        )

    async def update_payment(self, request: PaymentUpdateRequest, admin: AdminContext) -> Optional[Dict[str, Any]]:
        current = await payment.get(self.store, request.paymentId)
        if current is None:
            return None
        changes: Dict[str, Any] = {}
        if request.status is not None:
            changes["status"] = request.status
        if request.note is not None:
            changes["adminNote"] = request.note
        if request.isArchived is not None:
            changes.update(archive_changes(request.isArchived, admin.user_id, self._now()))
        updated = await payment.update(self.store, id=request.paymentId, changes=changes)
        await self._audit(admin, "update-payment", "payments", request.paymentId, current, updated)
        return updated

    async def update_user(self, request: UserUpdateRequest, admin: AdminContext) -> Optional[Dict[str, Any]]:
        current = await user.get(self.store, request.userId)
        if current is None:
            return None
        changes = request.model_dump(include={"name", "phone", "college", "isOrganizer"}, exclude_none=True)
        if request.isArchived is not None:
            changes.update(archive_changes(request.isArchived, admin.user_id, self._now()))
        updated = await user.update(self.store, id=request.userId, changes=changes)
        await self._audit(admin, "update-user", "users", request.userId, current, updated)
        return updated

    async def update_event(self, request: EventUpdateRequest, admin: AdminContext) -> Optional[Dict[str, Any]]:
        current = await event.get(self.store, request.eventId)
        if current is None:
            return None
        changes = request.model_dump(exclude={"eventId"}, exclude_none=True)
        updated = await event.update(self.store, id=request.eventId, changes=changes)
        await self._audit(admin, "update-event", "events", request.eventId, current, updated)
        return updated

    async def update_team(self, request: TeamUpdateRequest, admin: AdminContext) -> Optional[Dict[str, Any]]:
        current = await team.get(self.store, request.teamId)
        if current is None:
            return None

        changes: Dict[str, Any] = {}
        if request.teamName is not None:
            changes["teamName"] = request.teamName.strip()

        members: Optional[List[Dict[str, Any]]] = None
        if request.members is not None:
            now_ms = int(self._now().timestamp() * 1000)
            members = []
            for i, m in enumerate(request.members):
                member = m.model_dump(exclude_none=True)
                member.setdefault("memberId", f"member_{now_ms}_{i}")
                member.setdefault("attendance", cleared_attendance())
                members.append(member)
        existing = current.get("members") if isinstance(current.get("members"), list) else []

        if request.resetAttendance:
            members = [{**m, "attendance": cleared_attendance()} for m in (members if members is not None else existing)]
        if request.removeMemberId is not None:
            members = [
                m for m in (members if members is not None else existing)
                if m.get("memberId") != request.removeMemberId
            ]
        if members is not None:
            changes["members"] = members
            changes["totalMembers"] = len(members)

        if request.isArchived is not None:
            changes.update(archive_changes(request.isArchived, admin.user_id, self._now()))

        updated = await team.update(self.store, id=request.teamId, changes=changes)
        await self._audit(admin, "update-team", "teams", request.teamId, current, updated)
        return updated

    async def set_member_attendance(
        self, team_id: str, member_id: str, checked_in: bool, admin: AdminContext
    ) -> Optional[Dict[str, Any]]:
        """Check a single team member in or out. None if team or member is missing."""
        current = await team.get(self.store, team_id)
        if current is None:
            return None
        members = current.get("members") if isinstance(current.get("members"), list) else []
        if not any(m.get("memberId") == member_id for m in members):
            return None

        attendance = (
            {"checkedIn": True, "checkInTime": self._now(), "checkedInBy": admin.user_id}
            if checked_in else cleared_attendance()
        )
        members = [
            {**m, "attendance": attendance} if m.get("memberId") == member_id else m
            for m in members
        ]
        updated = await team.update(self.store, id=team_id, changes={"members": members})
        await self._audit(
            admin, "team-attendance", "teams", team_id,
            {"memberId": member_id}, {"memberId": member_id, "attendance": attendance},
        )
        return updated
