"""
Tests for on-spot desk registration and pricing.
"""

import pytest

from passgate.core.exceptions import ConfigurationError, ValidationError
from passgate.crud import audit_log
from passgate.schemas.mutations import OnSpotRegistrationRequest
from passgate.services.pass_management.onspot import OnSpotRegistrationService, PassPricing
from passgate.services.pass_management.qr_signing import QRTokenSigner
from tests.utils.factories import admin

PRICES = {"day_pass": 500, "group_events": 250, "sana_concert": 2000, "test_pass": 1}


class TestPassPricing:
    def setup_method(self):
        self.pricing = PassPricing(PRICES)

    def test_flat_price(self):
        assert self.pricing.amount_for("day_pass") == 500

    def test_group_per_member(self):
        assert self.pricing.amount_for("group_events", members=4) == 1000

    def test_group_custom_per_person(self):
        assert self.pricing.amount_for("group_events", members=3, price_per_person=100) == 300

    def test_group_explicit_amount(self):
        assert self.pricing.amount_for("group_events", members=3, amount=999) == 999

    def test_unknown_type_is_free(self):
        assert self.pricing.amount_for("mystery") == 0


def _request(**overrides) -> OnSpotRegistrationRequest:
    data = {
        "name": "Walk In",
        "email": "Walk.In@Example.com",
        "phone": "9000000000",
        "college": "City College",
        "passType": "day_pass",
        "paymentMode": "cash",
        "selectedEvents": ["E1"],
    }
    data.update(overrides)
    return OnSpotRegistrationRequest(**data)


@pytest.mark.asyncio
async def test_day_pass_registration(store, signer):
    service = OnSpotRegistrationService(store, signer, PassPricing(PRICES))

    response = await service.register(_request(), admin())

    assert response.amount == 500
    assert response.teamId is None
    assert response.orderId.startswith("onspot_")

    created_user = await store.get("users", response.userId)
    assert created_user["email"] == "walk.in@example.com"
    assert created_user["createdOnSpot"] is True
    assert created_user["addedBy"] == "admin_1"

    stored_payment = await store.get("payments", response.paymentId)
    assert stored_payment["status"] == "success"
    assert stored_payment["paymentMode"] == "cash"
    assert stored_payment["orderId"] == response.orderId

    stored_pass = await store.get("passes", response.passId)
    assert stored_pass["status"] == "paid"
    assert stored_pass["eventIds"] == ["E1"]
    assert stored_pass["paymentId"] == response.paymentId
    assert stored_pass["qrCode"].startswith("data:image/png;base64,")

    logs = await audit_log.get_recent(store, limit=5)
    assert len(logs) == 1
    assert logs[0]["action"] == "onspot-process-cash"
    assert logs[0]["targetId"] == response.passId


@pytest.mark.asyncio
async def test_existing_user_is_reused(store, signer):
    store.seed("users", "U1", {"email": "walk.in@example.com", "name": "Existing"})
    service = OnSpotRegistrationService(store, signer, PassPricing(PRICES))

    response = await service.register(_request(), admin())

    assert response.userId == "U1"
    assert await store.count("users") == 1


@pytest.mark.asyncio
async def test_group_registration_creates_team(store, signer):
    service = OnSpotRegistrationService(store, signer, PassPricing(PRICES))
    request = _request(
        passType="group_events",
        teamName="  Rockets ",
        members=[
            {"name": "Lead", "phone": "1"},
            {"name": "Second", "phone": "2", "college": "Other U"},
        ],
    )

    response = await service.register(request, admin())

    assert response.amount == 500
    stored_team = await store.get("teams", response.teamId)
    assert stored_team["teamName"] == "Rockets"
    assert stored_team["totalMembers"] == 2
    assert stored_team["passId"] == response.passId
    assert stored_team["members"][0]["isLeader"] is True
    assert stored_team["members"][0]["college"] == "City College"
    assert stored_team["members"][1]["isLeader"] is False
    assert stored_team["members"][1]["attendance"]["checkedIn"] is False

    stored_pass = await store.get("passes", response.passId)
    assert stored_pass["teamId"] == response.teamId
    assert stored_pass["teamSnapshot"]["teamName"] == "Rockets"
    assert len(stored_pass["teamSnapshot"]["members"]) == 2


@pytest.mark.asyncio
async def test_group_requires_team_and_members(store, signer):
    service = OnSpotRegistrationService(store, signer, PassPricing(PRICES))

    with pytest.raises(ValidationError):
        await service.register(_request(passType="group_events", teamName="Rockets"), admin())

    assert await store.count("passes") == 0


@pytest.mark.asyncio
async def test_zero_price_rejected(store, signer):
    service = OnSpotRegistrationService(store, signer, PassPricing({}))

    with pytest.raises(ValidationError):
        await service.register(_request(), admin())


@pytest.mark.asyncio
async def test_unconfigured_signer_writes_nothing(store):
    service = OnSpotRegistrationService(store, QRTokenSigner(""), PassPricing(PRICES))

    with pytest.raises(ConfigurationError):
        await service.register(_request(passType="group_events", teamName="Rockets", members=[
            {"name": "Lead", "phone": "9000000001"},
        ]), admin())

    for collection in ("users", "teams", "payments", "passes", "admin_logs"):
        assert await store.count(collection) == 0


@pytest.mark.asyncio
async def test_pass_is_written_once_with_qr_code(store, signer):
    service = OnSpotRegistrationService(store, signer, PassPricing(PRICES))

    response = await service.register(_request(), admin())

    stored_pass = await store.get("passes", response.passId)
    assert stored_pass["qrCode"].startswith("data:image/png;base64,")
    assert stored_pass["createdAt"] == stored_pass["updatedAt"]
