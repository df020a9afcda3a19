# passgate/api/v1/endpoints/payments.py
from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import settings
from passgate.core.exceptions import NotFoundError
from passgate.core.limiter import limiter
from passgate.db.store import DocumentStore
from passgate.schemas.mutations import PaymentUpdateRequest, PaymentUpdateResponse
from passgate.schemas.token import AdminContext
from passgate.services.admin_records import AdminRecordService

router = APIRouter(prefix="/admin/payments", tags=["Payments"])


@router.post("/update", response_model=PaymentUpdateResponse)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def update_payment(
    request: Request,  # Required for rate limiter
    body: PaymentUpdateRequest,
    store: DocumentStore = Depends(deps.get_store),
    admin: AdminContext = Depends(deps.require_superadmin),
):
    updated = await AdminRecordService(store).update_payment(body, admin)
    if updated is None:
        raise NotFoundError("Payment", body.paymentId)
    return PaymentUpdateResponse(
        paymentId=body.paymentId,
        status=updated.get("status"),
        isArchived=bool(updated.get("isArchived")),
    )
