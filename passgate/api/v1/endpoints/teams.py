# passgate/api/v1/endpoints/teams.py
import logging

from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import settings
from passgate.core.exceptions import NotFoundError
from passgate.core.limiter import limiter
from passgate.db.store import DocumentStore
from passgate.schemas.mutations import AttendanceUpdateRequest, TeamUpdateRequest, TeamUpdateResponse
from passgate.schemas.token import AdminContext
from passgate.services.admin_records import AdminRecordService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/teams", tags=["Teams"])


@router.post("/update", response_model=TeamUpdateResponse)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def update_team(
    request: Request,  # Required for rate limiter
    body: TeamUpdateRequest,
    store: DocumentStore = Depends(deps.get_store),
    admin: AdminContext = Depends(deps.require_manager),
):
    """Rename, replace members, reset attendance, drop a member or archive."""
    updated = await AdminRecordService(store).update_team(body, admin)
    if updated is None:
        raise NotFoundError("Team", body.teamId)
    members = updated.get("members") if isinstance(updated.get("members"), list) else []
    return TeamUpdateResponse(
        teamId=body.teamId,
        totalMembers=updated.get("totalMembers", len(members)),
        isArchived=bool(updated.get("isArchived")),
    )


@router.post("/{team_id}/members/{member_id}/attendance")
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def set_member_attendance(
    request: Request,  # Required for rate limiter
    team_id: str,
    member_id: str,
    body: AttendanceUpdateRequest,
    store: DocumentStore = Depends(deps.get_store),
    admin: AdminContext = Depends(deps.require_manager),
):
    updated = await AdminRecordService(store).set_member_attendance(team_id, member_id, body.checkedIn, admin)
    if updated is None:
        raise NotFoundError("Team member", f"{team_id}/{member_id}")
    return {"success": True, "teamId": team_id, "memberId": member_id, "checkedIn": body.checkedIn}
