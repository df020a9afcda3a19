# passgate/core/admin_roles.py
"""
Centralized admin role ordering and permission checks.

Roles are ordered viewer < manager < superadmin. Anything missing or
unrecognised is treated as viewer (read-only).
"""

from typing import Dict

VALID_ROLES = ("viewer", "manager", "superadmin")

ROLE_RANK: Dict[str, int] = {
    "viewer": 0,
    "manager": 1,
    "superadmin": 2,
}


def parse_role(value) -> str:
    """Return a valid role for any claim value, defaulting to viewer."""
    if isinstance(value, str) and value.lower() in ROLE_RANK:
        return value.lower()
    return "viewer"


def has_at_least(role: str, minimum: str) -> bool:
    return ROLE_RANK.get(role, 0) >= ROLE_RANK[minimum]


def can_mutate_passes(role: str) -> bool:
    """Mark used, revert, archive, hard delete, regenerate QR."""
    return has_at_least(role, "manager")


def can_mutate_teams(role: str) -> bool:
    return has_at_least(role, "manager")


def can_mutate_users_payments_events(role: str) -> bool:
    return role == "superadmin"


def can_view_financials(role: str) -> bool:
    return role == "superadmin"
