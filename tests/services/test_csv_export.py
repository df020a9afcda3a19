"""
Tests for CSV rendering of dashboard records.
"""

from passgate.services.reporting.csv_export import render_csv
from passgate.services.reporting.entity_resolver import HydratedPass


def _record(**overrides) -> HydratedPass:
    data = dict(
        pass_id="P1",
        user_id="U1",
        payment_id="PAY1",
        name="Attendee, One",
        email="one@example.com",
        college="City College",
        phone="9000000001",
        event_name='The "Big" Show',
        pass_type="day_pass",
        payment_status="success",
        amount=500.0,
        order_id="order_1",
        created_at="2026-02-10T06:00:00+00:00",
    )
    data.update(overrides)
    return HydratedPass(**data)


def test_operations_columns():
    lines = render_csv([_record()], "operations").decode("utf-8").split("\r\n")

    assert lines[0] == "Name,College,Phone,Email,Event,Pass Type,Payment,Registered On"
    assert lines[1] == (
        '"Attendee, One",City College,9000000001,one@example.com,'
        '"The ""Big"" Show",day_pass,Confirmed,2026-02-10T06:00:00+00:00'
    )


def test_financial_columns_and_amount_format():
    lines = render_csv([_record(amount=500.0), _record(amount=99.5)], "financial").decode("utf-8").split("\r\n")

    assert lines[0] == "Name,College,Phone,Email,Event,Pass Type,Amount,Payment,Order ID,Registered On"
    assert ",500,success,order_1," in lines[1]
    assert ",99.5,success,order_1," in lines[2]


def test_crlf_line_endings():
    body = render_csv([_record()], "operations")
    assert body.count(b"\r\n") == 2
    assert b"\n" not in body.replace(b"\r\n", b"")


def test_empty_export_has_header_only():
    body = render_csv([], "operations").decode("utf-8")
    assert body == "Name,College,Phone,Email,Event,Pass Type,Payment,Registered On\r\n"
