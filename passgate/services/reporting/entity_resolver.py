"""
Application-side join for pass records.

Given a page of pass documents, fetch every distinct referenced user,
payment, team and event with concurrent point lookups (never a range scan),
keep only passes whose payment succeeded, and derive the display fields
(event name, category/type, college, order id).

Event naming depends on the pass category; each category has its own rule
in EVENT_NAME_RULES and nowhere else decides how an event name looks.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from passgate.crud import event, payment, team, user
from passgate.db.store import DocumentStore
from passgate.utils.documents import str_list, to_iso

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"
SUCCESS = "success"


def _str(doc: Optional[Dict[str, Any]], key: str) -> Optional[str]:
    if not doc:
        return None
    value = doc.get(key)
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class EventInfo:
    id: str
    name: str
    category: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "EventInfo":
        return cls(
            id=doc["id"],
            name=_str(doc, "name") or _str(doc, "title") or doc["id"],
            category=_str(doc, "category"),
            type=_str(doc, "type"),
        )


@dataclass
class HydratedPass:
    """A pass joined with its payment, owner, team and events."""

    pass_id: str
    user_id: str
    payment_id: str
    name: str
    email: str
    college: str
    phone: str
    event_name: str
    pass_type: str
    payment_status: str
    amount: float
    order_id: str
    created_at: str
    event_category: Optional[str] = None
    event_type: Optional[str] = None
    event_ids: List[str] = field(default_factory=list)


def event_ids_for_pass(doc: Dict[str, Any]) -> List[str]:
    """eventIds when present, else selectedEvents plus the legacy single-event field."""
    event_ids = str_list(doc.get("eventIds"))
    if event_ids:
        return event_ids
    selected = str_list(doc.get("selectedEvents"))
    single = _str(doc, "eventId") or _str(doc, "selectedEvent")
    if single and single not in selected:
        return [*selected, single]
    return selected


# ---- event naming, one rule per pass category ----

NamingRule = Callable[[Dict[str, Any], Optional[Dict[str, Any]], List[str]], str]


def _name_group_events(doc, snapshot, names):
    if names:
        return ", ".join(names)
    return _str(snapshot, "teamName") or PLACEHOLDER


def _name_day_pass(doc, snapshot, names):
    return _str(doc, "selectedDay") or (names[0] if names else PLACEHOLDER)


def _name_proshow(doc, snapshot, names):
    return names[0] if names else PLACEHOLDER


def _name_sana_concert(doc, snapshot, names):
    return "Sana Concert"


def _name_default(doc, snapshot, names):
    return ", ".join(names) if names else PLACEHOLDER


EVENT_NAME_RULES: Dict[str, NamingRule] = {
    "group_events": _name_group_events,
    "day_pass": _name_day_pass,
    "proshow": _name_proshow,
    "sana_concert": _name_sana_concert,
}


def derive_event_name(pass_type: str, doc: Dict[str, Any], snapshot: Optional[Dict[str, Any]], names: List[str]) -> str:
    rule = EVENT_NAME_RULES.get((pass_type or "").lower(), _name_default)
    return rule(doc, snapshot, names)


def resolve_category_type(
    doc: Dict[str, Any], event_ids: List[str], events: Dict[str, EventInfo]
) -> Tuple[Optional[str], Optional[str]]:
    """Category/type from the pass itself, falling back to its first event."""
    category = _str(doc, "eventCategory")
    event_type = _str(doc, "eventType")
    if category and event_type:
        return category, event_type
    first = events.get(event_ids[0]) if event_ids else None
    return (
        category or (first.category if first else None),
        event_type or (first.type if first else None),
    )


def _leader_college(container: Optional[Dict[str, Any]]) -> Optional[str]:
    """leaderCollege on a team/snapshot, else the college of its leader member."""
    if not container:
        return None
    college = _str(container, "leaderCollege")
    if college:
        return college
    members = container.get("members")
    if isinstance(members, list):
        for member in members:
            if isinstance(member, dict) and member.get("isLeader"):
                return _str(member, "college")
    return None


def resolve_college(
    profile: Optional[Dict[str, Any]],
    team_doc: Optional[Dict[str, Any]],
    snapshot: Optional[Dict[str, Any]],
) -> str:
    return (
        _str(profile, "college")
        or _leader_college(team_doc)
        or _leader_college(snapshot)
        or ""
    )


def order_id_of(payment_doc: Dict[str, Any]) -> str:
    return _str(payment_doc, "orderId") or _str(payment_doc, "cashfreeOrderId") or ""


def amount_of(payment_doc: Dict[str, Any]) -> float:
    try:
        amount = float(payment_doc.get("amount") or 0)
    except (TypeError, ValueError):
        return 0
    return amount if amount == amount else 0


class EntityResolver:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def resolve(self, passes: List[Dict[str, Any]]) -> List[HydratedPass]:
        """Hydrate passes in input order, dropping any without a successful payment."""
        if not passes:
            return []

        user_ids = {_str(p, "userId") for p in passes} - {None, ""}
        payment_ids = {_str(p, "paymentId") for p in passes} - {None, ""}
        team_ids = {_str(p, "teamId") for p in passes} - {None, ""}
        event_ids = {eid for p in passes for eid in event_ids_for_pass(p)}

        users, payments, teams, event_docs = await asyncio.gather(
            user.get_many(self.store, user_ids),
            payment.get_many(self.store, payment_ids),
            team.get_many(self.store, team_ids),
            event.get_many(self.store, event_ids),
        )
        events = {eid: EventInfo.from_doc(doc) for eid, doc in event_docs.items()}

        hydrated: List[HydratedPass] = []
        for doc in passes:
            payment_id = _str(doc, "paymentId") or ""
            payment_doc = payments.get(payment_id)
            if not payment_doc or payment_doc.get("status") != SUCCESS:
                continue
            hydrated.append(self._hydrate(doc, payment_doc, users, teams, events))

        dropped = len(passes) - len(hydrated)
        if dropped:
            logger.debug(f"Join dropped {dropped} passes without a successful payment")
        return hydrated

    def _hydrate(
        self,
        doc: Dict[str, Any],
        payment_doc: Dict[str, Any],
        users: Dict[str, Dict[str, Any]],
        teams: Dict[str, Dict[str, Any]],
        events: Dict[str, EventInfo],
    ) -> HydratedPass:
        user_id = _str(doc, "userId") or ""
        profile = users.get(user_id)
        team_doc = teams.get(_str(doc, "teamId") or "")
        snapshot = doc.get("teamSnapshot") if isinstance(doc.get("teamSnapshot"), dict) else None

        ids = event_ids_for_pass(doc)
        names = [events[eid].name if eid in events else eid for eid in ids]
        pass_type = _str(doc, "passType") or ""
        category, event_type = resolve_category_type(doc, ids, events)

        return HydratedPass(
            pass_id=doc["id"],
            user_id=user_id,
            payment_id=_str(doc, "paymentId") or "",
            name=_str(profile, "name") or "",
            email=_str(profile, "email") or "",
            college=resolve_college(profile, team_doc, snapshot),
            phone=_str(profile, "phone") or "",
            event_name=derive_event_name(pass_type, doc, snapshot, names),
            pass_type=pass_type,
            payment_status=SUCCESS,
            amount=amount_of(payment_doc),
            order_id=order_id_of(payment_doc),
            created_at=to_iso(doc.get("createdAt")) or "1970-01-01T00:00:00+00:00",
            event_category=category,
            event_type=event_type,
            event_ids=ids,
        )
