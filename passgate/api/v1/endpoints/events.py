# passgate/api/v1/endpoints/events.py
from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import settings
from passgate.core.exceptions import NotFoundError
from passgate.core.limiter import limiter
from passgate.db.store import DocumentStore
from passgate.schemas.mutations import EventUpdateRequest, EventUpdateResponse
from passgate.schemas.token import AdminContext
from passgate.services.admin_records import AdminRecordService

router = APIRouter(prefix="/admin/events", tags=["Events"])


@router.post("/update", response_model=EventUpdateResponse)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def update_event(
    request: Request,  # Required for rate limiter
    body: EventUpdateRequest,
    store: DocumentStore = Depends(deps.get_store),
    admin: AdminContext = Depends(deps.require_superadmin),
):
    updated = await AdminRecordService(store).update_event(body, admin)
    if updated is None:
        raise NotFoundError("Event", body.eventId)
    return EventUpdateResponse(
        eventId=body.eventId,
        isActive=updated.get("isActive"),
        isArchived=bool(updated.get("isArchived")),
    )
