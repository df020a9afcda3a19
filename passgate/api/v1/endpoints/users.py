# passgate/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import settings
from passgate.core.exceptions import NotFoundError
from passgate.core.limiter import limiter
from passgate.db.store import DocumentStore
from passgate.schemas.mutations import UserUpdateRequest, UserUpdateResponse
from passgate.schemas.token import AdminContext
from passgate.services.admin_records import AdminRecordService

router = APIRouter(prefix="/admin/users", tags=["Users"])


@router.post("/update", response_model=UserUpdateResponse)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def update_user(
    request: Request,  # Required for rate limiter
    body: UserUpdateRequest,
    store: DocumentStore = Depends(deps.get_store),
    admin: AdminContext = Depends(deps.require_superadmin),
):
    """Edit profile fields, the organizer flag or the archive state of a user."""
    updated = await AdminRecordService(store).update_user(body, admin)
    if updated is None:
        raise NotFoundError("User", body.userId)
    return UserUpdateResponse(
        userId=body.userId,
        name=updated.get("name"),
        phone=updated.get("phone"),
        college=updated.get("college"),
        isOrganizer=updated.get("isOrganizer"),
        isArchived=bool(updated.get("isArchived")),
    )
