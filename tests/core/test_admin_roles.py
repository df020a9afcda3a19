import pytest

from passgate.core import admin_roles


@pytest.mark.parametrize(
    "claim, expected",
    [("viewer", "viewer"), ("Manager", "manager"), ("SUPERADMIN", "superadmin"),
     (None, "viewer"), ("root", "viewer"), (7, "viewer")],
)
def test_parse_role(claim, expected):
    assert admin_roles.parse_role(claim) == expected


def test_role_ordering():
    assert admin_roles.has_at_least("superadmin", "manager")
    assert admin_roles.has_at_least("manager", "manager")
    assert not admin_roles.has_at_least("viewer", "manager")


def test_permission_helpers():
    assert admin_roles.can_mutate_passes("manager")
    assert admin_roles.can_mutate_teams("manager")
    assert not admin_roles.can_mutate_passes("viewer")
    assert not admin_roles.can_mutate_users_payments_events("manager")
    assert admin_roles.can_view_financials("superadmin")
    assert not admin_roles.can_view_financials("manager")
