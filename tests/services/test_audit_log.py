"""
Tests for audit log writes and snapshot redaction.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from passgate.crud import audit_log
from passgate.crud.crud_audit_log import REDACTED, sanitize


def test_sanitize_redacts_nested_keys():
    snapshot = {
        "status": "paid",
        "qrCode": "data:image/png;base64,AAAA",
        "payment": {"amount": 500, "orderId": "o1"},
        "history": [{"token": "secret-token", "note": "ok"}],
    }

    clean = sanitize(snapshot)

    assert clean["status"] == "paid"
    assert clean["qrCode"] == REDACTED
    assert clean["payment"] == {"amount": REDACTED, "orderId": "o1"}
    assert clean["history"] == [{"token": REDACTED, "note": "ok"}]


def test_sanitize_serializes_datetimes():
    moment = datetime(2026, 2, 10, 6, 0, tzinfo=timezone.utc)
    assert sanitize({"usedAt": moment}) == {"usedAt": "2026-02-10T06:00:00+00:00"}


@pytest.mark.asyncio
async def test_log_action_and_recent_order(store):
    t0 = datetime(2026, 2, 10, 6, 0, tzinfo=timezone.utc)
    with patch("passgate.crud.crud_audit_log.utcnow", side_effect=[t0, t0 + timedelta(seconds=1)]):
        first = await audit_log.log_action(
            store, admin_id="a1", action="markUsed", target_collection="passes", target_id="P1",
            previous_data={"status": "paid"}, new_data={"status": "used", "qrCode": "x"},
            ip_address="10.0.0.1",
        )
        second = await audit_log.log_action(
            store, admin_id="a1", action="revertUsed", target_collection="passes", target_id="P1",
        )

    stored = await audit_log.get(store, id=first["id"])
    assert stored["newData"] == {"status": "used", "qrCode": REDACTED}
    assert stored["ipAddress"] == "10.0.0.1"

    recent = await audit_log.get_recent(store, limit=10)
    assert [entry["id"] for entry in recent] == [second["id"], first["id"]]
    assert recent[0]["previousData"] is None

    assert len(await audit_log.get_recent(store, limit=1)) == 1
