"""
Scan verification.

Verification never writes. Consuming a pass is a separate, explicit
markUsed call once staff confirm the scan, so a retried verify request can
not burn an entitlement.

Clients only ever see valid / already_used / invalid plus a fixed message;
the precise rejection reason goes to the log.
"""

import logging
from typing import Any, Dict, Optional

from passgate.crud import pass_doc, user
from passgate.db.store import DocumentStore, StoreError
from passgate.schemas.scan import ScanResult
from passgate.services.pass_management.qr_signing import QRTokenSigner, extract_token
from passgate.services.pass_management.state_machine import is_used

logger = logging.getLogger(__name__)

MSG_MISSING_TOKEN = "Missing or invalid token"
MSG_BAD_TOKEN = "Invalid or expired token"
MSG_NOT_FOUND = "Pass not found"
MSG_ALREADY_USED = "Pass already used"
MSG_VALID = "Valid"


class CheckInVerifier:
    def __init__(self, store: DocumentStore, signer: QRTokenSigner):
        self.store = store
        self.signer = signer

    async def verify(self, raw: Any) -> ScanResult:
        token = extract_token(raw)
        if token is None:
            logger.info("Scan rejected: no token in submission")
            return ScanResult(result="invalid", message=MSG_MISSING_TOKEN)

        verification = self.signer.verify(token)
        if not verification.valid:
            logger.warning(f"Scan rejected: {verification.reason}")
            return ScanResult(result="invalid", message=MSG_BAD_TOKEN)

        pass_id = verification.pass_id
        doc = await pass_doc.get(self.store, pass_id)
        if doc is None:
            logger.warning(f"Scan rejected: pass {pass_id} not found")
            return ScanResult(result="invalid", message=MSG_NOT_FOUND)

        display = await self._display_fields(doc)
        if is_used(doc):
            logger.info(f"Scan of already used pass {pass_id}")
            return ScanResult(result="already_used", passId=pass_id, message=MSG_ALREADY_USED, **display)

        return ScanResult(result="valid", passId=pass_id, message=MSG_VALID, **display)

    async def _display_fields(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """Owner name from one user lookup; team info from the pass snapshot only."""
        fields: Dict[str, Any] = {
            "passType": doc.get("passType") if isinstance(doc.get("passType"), str) else None,
        }
        snapshot = doc.get("teamSnapshot")
        if isinstance(snapshot, dict):
            if isinstance(snapshot.get("teamName"), str):
                fields["teamName"] = snapshot["teamName"]
            if isinstance(snapshot.get("members"), list):
                fields["memberCount"] = len(snapshot["members"])

        fields["name"] = await self._owner_name(doc.get("userId"))
        return fields

    async def _owner_name(self, user_id: Optional[str]) -> Optional[str]:
        if not isinstance(user_id, str) or not user_id:
            return None
        try:
            profile = await user.get(self.store, user_id)
        except StoreError as e:
            # Display fields are best-effort; the verdict does not depend on them
            logger.warning(f"Owner lookup failed for user {user_id}: {e}")
            return None
        name = profile.get("name") if profile else None
        return name if isinstance(name, str) else None
