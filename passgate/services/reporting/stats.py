"""
Overview statistics and recent-activity feed for the admin landing page.
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from passgate.core.config import Settings
from passgate.crud import pass_doc, payment, team, user
from passgate.db.store import DocumentStore
from passgate.services.reporting.entity_resolver import amount_of
from passgate.services.reporting.metrics import venue_day_bounds
from passgate.utils.documents import to_datetime, utcnow

logger = logging.getLogger(__name__)

_TEST_PASS = re.compile("test", re.IGNORECASE)


class ActivityItem(BaseModel):
    id: str
    type: str
    message: str
    timestamp: str


class OverviewStats(BaseModel):
    totalSuccessfulPayments: int
    revenue: float
    activePasses: int
    usedPasses: int
    pendingPayments: int
    teamsRegistered: int
    totalUsers: int
    registrationsToday: int
    registrationsYesterday: int
    passDistribution: Dict[str, int]
    activity: List[ActivityItem] = []


def _recent(docs: List[Dict[str, Any]], field: str, limit: int):
    dated = [(to_datetime(d.get(field)), d) for d in docs]
    dated = [(ts, d) for ts, d in dated if ts is not None]
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return dated[:limit]


class OverviewStatsService:
    def __init__(
        self,
        store: DocumentStore,
        settings: Settings,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.settings = settings
        self.tz = ZoneInfo(settings.VENUE_TIMEZONE)
        self._now = now or utcnow

    async def compute(self) -> OverviewStats:
        limit = self.settings.REVENUE_SCAN_LIMIT
        payments = await payment.scan(self.store, limit=limit)
        passes = await pass_doc.scan(self.store, limit=limit)
        teams = await team.scan(self.store, limit=limit)
        total_users = await user.count(self.store)

        successful = [p for p in payments if p.get("status") == "success"]
        status_by_payment = {p["id"]: p.get("status") for p in payments}

        distribution: Dict[str, int] = {}
        for p in passes:
            if p.get("isArchived") is True:
                continue
            payment_id = p.get("paymentId")
            if payment_id and status_by_payment.get(payment_id) != "success":
                continue
            pass_type = p.get("passType")
            if isinstance(pass_type, str) and pass_type and not _TEST_PASS.search(pass_type):
                distribution[pass_type] = distribution.get(pass_type, 0) + 1

        now = self._now()
        today = venue_day_bounds(now, self.tz, days_ago=0)
        yesterday = venue_day_bounds(now, self.tz, days_ago=1)
        registrations_today = registrations_yesterday = 0
        for p in successful:
            created = to_datetime(p.get("createdAt"))
            if created is None:
                continue
            if today[0] <= created < today[1]:
                registrations_today += 1
            elif yesterday[0] <= created < yesterday[1]:
                registrations_yesterday += 1

        return OverviewStats(
            totalSuccessfulPayments=len(successful),
            revenue=sum(amount_of(p) for p in successful),
            activePasses=sum(1 for p in passes if p.get("status") == "paid"),
            usedPasses=sum(1 for p in passes if p.get("status") == "used"),
            pendingPayments=sum(1 for p in payments if p.get("status") == "pending"),
            teamsRegistered=len(teams),
            totalUsers=total_users,
            registrationsToday=registrations_today,
            registrationsYesterday=registrations_yesterday,
            passDistribution=distribution,
            activity=self._activity(successful, passes, teams),
        )

    def _activity(self, successful, passes, teams) -> List[ActivityItem]:
        items: List[ActivityItem] = []
        for ts, p in _recent(successful, "createdAt", 10):
            items.append(ActivityItem(
                id=f"pay-{p['id']}",
                type="payment",
                message=f"Payment success - {p.get('passType') or ''} - ₹{amount_of(p):g}",
                timestamp=ts.isoformat(),
            ))
        used = [p for p in passes if p.get("status") == "used"]
        for ts, p in _recent(used, "usedAt", 10):
            items.append(ActivityItem(
                id=f"scan-{p['id']}",
                type="scan",
                message=f"Pass scanned - {p.get('passType') or ''}",
                timestamp=ts.isoformat(),
            ))
        for ts, t in _recent(teams, "createdAt", 5):
            items.append(ActivityItem(
                id=f"team-{t['id']}",
                type="team",
                message=f"Team created - {t.get('teamName') or ''}",
                timestamp=ts.isoformat(),
            ))
        items.sort(key=lambda item: item.timestamp, reverse=True)
        return items[:20]
