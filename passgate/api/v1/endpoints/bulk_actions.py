# passgate/api/v1/endpoints/bulk_actions.py
from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import Settings, get_settings, settings as app_settings
from passgate.core.limiter import limiter
from passgate.db.store import DocumentStore
from passgate.schemas.bulk import BulkActionRequest, BulkActionResponse
from passgate.schemas.token import AdminContext
from passgate.services.bulk_actions import BulkActionProcessor

router = APIRouter(tags=["Bulk Actions"])


@router.post("/admin/bulk-action", response_model=BulkActionResponse, response_model_exclude_none=True)
@limiter.limit(app_settings.RATE_LIMIT_BULK)
async def bulk_action(
    request: Request,  # Required for rate limiter
    body: BulkActionRequest,
    store: DocumentStore = Depends(deps.get_store),
    settings: Settings = Depends(get_settings),
    admin: AdminContext = Depends(deps.get_current_admin),
):
    """Apply one action to many documents; per-id failures are reported, not raised."""
    processor = BulkActionProcessor(store, max_targets=settings.BULK_MAX_TARGETS)
    return await processor.apply(body.action, body.targetCollection, body.targetIds, admin)
