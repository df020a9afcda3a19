# passgate/api/v1/endpoints/onspot.py
from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import Settings, get_settings, settings as app_settings
from passgate.core.limiter import limiter
from passgate.db.store import DocumentStore
from passgate.schemas.mutations import OnSpotRegistrationRequest, OnSpotRegistrationResponse
from passgate.schemas.token import AdminContext
from passgate.services.pass_management.onspot import OnSpotRegistrationService, PassPricing
from passgate.services.pass_management.qr_signing import QRTokenSigner

router = APIRouter(prefix="/admin/onspot", tags=["On-spot"])


@router.post("/register", response_model=OnSpotRegistrationResponse, response_model_exclude_none=True)
@limiter.limit(app_settings.RATE_LIMIT_MUTATION)
async def register_onspot(
    request: Request,  # Required for rate limiter
    body: OnSpotRegistrationRequest,
    store: DocumentStore = Depends(deps.get_store),
    signer: QRTokenSigner = Depends(deps.get_signer),
    settings: Settings = Depends(get_settings),
    admin: AdminContext = Depends(deps.require_manager),
):
    """Register a walk-in paying by cash or UPI at the desk."""
    service = OnSpotRegistrationService(store, signer, PassPricing(settings.PASS_PRICES))
    return await service.register(body, admin)
