# passgate/api/v1/endpoints/check_in.py
"""
Door-scan verification.

Verification is read-only; consuming the pass is PATCH /admin/passes/{id}
with action=markUsed once staff confirm the scan.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import settings
from passgate.core.exceptions import ValidationError
from passgate.core.limiter import limiter
from passgate.db.store import DocumentStore
from passgate.schemas.scan import ScanResult
from passgate.schemas.token import AdminContext
from passgate.services.pass_management.check_in import CheckInVerifier
from passgate.services.pass_management.qr_signing import QRTokenSigner

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Check-in"])


@router.post("/admin/scan-verify", response_model=ScanResult, response_model_exclude_none=True)
@limiter.limit(settings.RATE_LIMIT_SCAN)
async def scan_verify(
    request: Request,  # Required for rate limiter
    store: DocumentStore = Depends(deps.get_store),
    signer: QRTokenSigner = Depends(deps.get_signer),
    admin: AdminContext = Depends(deps.get_current_admin),
):
    """Verify a scanned QR token.

    Accepts a JSON object with a `token` field (the full QR payload works
    too) or a bare JSON string. Always answers 200 with a verdict of
    valid / already_used / invalid.
    """
    try:
        body = json.loads(await request.body() or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")

    verifier = CheckInVerifier(store, signer)
    return await verifier.verify(body)
