"""
On-spot (cash / UPI at the desk) registration.

The pass id is allocated and its QR code signed before anything is written,
so a signing failure leaves no partial registration. Then creates, in order:
the user (only if no profile matches the email), the team for group passes,
a successful payment, the pass with its QR code and team snapshot, then
links the team back to the pass. There is no multi-document transaction;
the team snapshot on the pass is what check-in relies on.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from passgate.core.exceptions import ConfigurationError, ValidationError
from passgate.crud import audit_log, pass_doc, payment, team, user
from passgate.db.store import DocumentStore
from passgate.schemas.mutations import OnSpotRegistrationRequest, OnSpotRegistrationResponse
from passgate.schemas.token import AdminContext
from passgate.services.pass_management.qr_signing import QRTokenSigner, issue_pass_qr
from passgate.utils.documents import utcnow

logger = logging.getLogger(__name__)

GROUP_PASS = "group_events"


class PassPricing:
    """Price table for desk registrations. Group prices are per member."""

    def __init__(self, prices: Mapping[str, float]):
        self.prices = dict(prices)

    def amount_for(
        self,
        pass_type: str,
        members: int = 1,
        amount: Optional[float] = None,
        price_per_person: Optional[float] = None,
    ) -> float:
        if pass_type == GROUP_PASS:
            if amount is not None:
                return amount
            per_person = price_per_person if price_per_person is not None else self.prices.get(GROUP_PASS, 0)
            return max(1, members) * per_person
        return self.prices.get(pass_type, 0)


def _build_members(request: OnSpotRegistrationRequest, now_ms: int) -> List[Dict[str, Any]]:
    return [
        {
            "memberId": f"member_{now_ms}_{i}",
            "name": m.name.strip(),
            "phone": m.phone.strip(),
            "email": (m.email or "").strip() or None,
            "college": (m.college or "").strip() or (request.college if i == 0 else None),
            "isLeader": i == 0,
            "attendance": {"checkedIn": False, "checkInTime": None, "checkedInBy": None},
        }
        for i, m in enumerate(request.members or [])
    ]


class OnSpotRegistrationService:
    def __init__(
        self,
        store: DocumentStore,
        signer: QRTokenSigner,
        pricing: PassPricing,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.signer = signer
        self.pricing = pricing
        self._now = now or utcnow

    async def register(self, request: OnSpotRegistrationRequest, admin: AdminContext) -> OnSpotRegistrationResponse:
        is_group = request.passType == GROUP_PASS
        if is_group and (not (request.teamName or "").strip() or not request.members):
            raise ValidationError("Group events require team name and at least one member", field="members")

        amount = self.pricing.amount_for(
            request.passType,
            members=len(request.members or []),
            amount=request.amount,
            price_per_person=request.pricePerPerson,
        )
        if amount <= 0:
            raise ValidationError("Invalid pass type or amount", field="passType")

        if not self.signer.configured:
            raise ConfigurationError("QR_SECRET_KEY is not configured")

        now = self._now()
        now_ms = int(now.timestamp() * 1000)

        existing_user = await user.get_by_email(self.store, email=request.email)
        user_id = existing_user["id"] if existing_user else uuid.uuid4().hex
        pass_id = uuid.uuid4().hex
        qr_code = issue_pass_qr(self.signer, pass_id, user_id, request.passType)

        if existing_user is None:
            await self._create_user(user_id, request, admin)

        order_id = f"onspot_{now_ms}_{user_id[:6]}"
        event_ids = list(request.selectedEvents)

        team_id = None
        team_snapshot = None
        if is_group:
            members = _build_members(request, now_ms)
            team_snapshot = {
                "teamName": request.teamName.strip(),
                "totalMembers": len(members),
                "leaderCollege": request.college,
                "members": members,
            }
            created_team = await team.create(self.store, obj_in={
                "leaderId": user_id,
                "teamName": team_snapshot["teamName"],
                "leaderCollege": request.college,
                "members": members,
                "totalMembers": len(members),
                "paymentStatus": "success",
                "eventIds": event_ids,
            })
            team_id = created_team["id"]

        payment_doc = await payment.create(self.store, obj_in={
            "userId": user_id,
            "amount": amount,
            "status": "success",
            "orderId": order_id,
            "paymentMode": request.paymentMode,
            "passType": request.passType,
            "eventIds": event_ids,
            "source": f"admin-onspot-{request.paymentMode}",
            "notes": f"{request.paymentMode.upper()} payment processed at the on-spot desk",
            **({"teamId": team_id} if team_id else {}),
        })
        payment_id = payment_doc["id"]

        pass_data: Dict[str, Any] = {
            "userId": user_id,
            "passType": request.passType,
            "paymentId": payment_id,
            "status": "paid",
            "usedAt": None,
            "scannedBy": None,
            "isArchived": False,
            "createdManually": True,
            "eventIds": event_ids,
            "selectedEvents": event_ids,
        }
        if team_id:
            pass_data["teamId"] = team_id
            pass_data["teamSnapshot"] = team_snapshot
        await pass_doc.create(self.store, obj_in={**pass_data, "qrCode": qr_code}, id=pass_id)

        if team_id:
            await team.update(self.store, id=team_id, changes={"passId": pass_id, "paymentStatus": "success"})

        await audit_log.log_action(
            self.store,
            admin_id=admin.user_id,
            action="onspot-process-cash",
            target_collection="passes",
            target_id=pass_id,
            previous_data={},
            new_data={
                **pass_data,
                "orderId": order_id,
                "amount": amount,
                "paymentMode": request.paymentMode,
            },
            ip_address=admin.ip_address,
        )
        logger.info(f"On-spot {request.paymentMode} registration {order_id}: pass {pass_id} for user {user_id}")

        return OnSpotRegistrationResponse(
            passId=pass_id,
            paymentId=payment_id,
            userId=user_id,
            orderId=order_id,
            teamId=team_id,
            amount=amount,
        )

    async def _create_user(self, user_id: str, request: OnSpotRegistrationRequest, admin: AdminContext) -> None:
        await user.create(self.store, id=user_id, obj_in={
            "email": request.email,
            "name": request.name.strip(),
            "phone": request.phone.strip(),
            "college": request.college.strip(),
            "isOrganizer": False,
            "createdOnSpot": True,
            "addedBy": admin.user_id,
        })
        logger.info(f"Created on-spot user {user_id}")
