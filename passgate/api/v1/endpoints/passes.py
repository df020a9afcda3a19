# passgate/api/v1/endpoints/passes.py
import logging

from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import settings
from passgate.core.exceptions import ConflictError, NotFoundError
from passgate.core.limiter import limiter
from passgate.crud import pass_doc
from passgate.db.store import DocumentStore
from passgate.schemas.mutations import (
    PassActionRequest,
    PassActionResponse,
    PassQrResponse,
    PassUpdateRequest,
    PassUpdateResponse,
)
from passgate.schemas.token import AdminContext
from passgate.services.pass_management.qr_signing import QRTokenSigner, issue_pass_qr
from passgate.services.pass_management.state_machine import InvalidTransitionError, PassStateMachine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/passes", tags=["Passes"])


@router.patch("/{pass_id}", response_model=PassActionResponse)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def apply_pass_action(
    request: Request,  # Required for rate limiter
    pass_id: str,
    body: PassActionRequest,
    store: DocumentStore = Depends(deps.get_store),
    admin: AdminContext = Depends(deps.require_manager),
):
    """Confirm a scan (markUsed) or undo one (revertUsed)."""
    machine = PassStateMachine(store)
    try:
        if body.action == "markUsed":
            updated = await machine.mark_used(pass_id, admin)
        else:
            updated = await machine.revert_used(pass_id, admin)
    except InvalidTransitionError as e:
        raise ConflictError(str(e))

    if updated is None:
        raise NotFoundError("Pass", pass_id)
    return PassActionResponse(passId=pass_id, status=updated["status"])


@router.post("/update", response_model=PassUpdateResponse)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def update_pass(
    request: Request,  # Required for rate limiter
    body: PassUpdateRequest,
    store: DocumentStore = Depends(deps.get_store),
    signer: QRTokenSigner = Depends(deps.get_signer),
    admin: AdminContext = Depends(deps.require_manager),
):
    """Partial pass edit: status, archive flag, linked events/team, fresh QR."""
    existing = await pass_doc.get(store, body.passId)
    if existing is None:
        raise NotFoundError("Pass", body.passId)

    extra = {}
    if body.selectedEvents is not None:
        extra["selectedEvents"] = body.selectedEvents
    if body.teamId is not None:
        extra["teamId"] = body.teamId
    if body.regenerateQr:
        # Earlier tokens for this pass stay valid until they expire
        extra["qrCode"] = issue_pass_qr(signer, body.passId, existing.get("userId"), existing.get("passType"))

    try:
        updated = await PassStateMachine(store).update(
            body.passId, admin, status=body.status, is_archived=body.isArchived, extra=extra,
        )
    except InvalidTransitionError as e:
        raise ConflictError(str(e))
    if updated is None:
        raise NotFoundError("Pass", body.passId)

    return PassUpdateResponse(
        passId=body.passId,
        status=updated.get("status"),
        isArchived=bool(updated.get("isArchived")),
    )


@router.delete("/{pass_id}")
@limiter.limit(settings.RATE_LIMIT_MUTATION)
async def delete_pass(
    request: Request,  # Required for rate limiter
    pass_id: str,
    store: DocumentStore = Depends(deps.get_store),
    admin: AdminContext = Depends(deps.require_manager),
):
    """Hard delete. Prefer archiving; this removes the document for good."""
    deleted = await PassStateMachine(store).hard_delete(pass_id, admin)
    if not deleted:
        raise NotFoundError("Pass", pass_id)
    return {"success": True, "passId": pass_id}


@router.get("/{pass_id}/qr", response_model=PassQrResponse)
async def get_pass_qr(
    pass_id: str,
    store: DocumentStore = Depends(deps.get_store),
    signer: QRTokenSigner = Depends(deps.get_signer),
    admin: AdminContext = Depends(deps.get_current_admin),
):
    """Freshly signed QR code for a pass (lost-QR resend)."""
    existing = await pass_doc.get(store, pass_id)
    if existing is None:
        raise NotFoundError("Pass", pass_id)
    qr_code_url = issue_pass_qr(signer, pass_id, existing.get("userId"), existing.get("passType"))
    return PassQrResponse(passId=pass_id, qrCodeUrl=qr_code_url)
