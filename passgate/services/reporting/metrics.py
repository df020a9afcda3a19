"""
Lightweight dashboard aggregates built from bounded, targeted reads.

Each metric is computed independently; a metric whose read fails is left
out of the response instead of failing the dashboard request.
"""

import logging
from collections import Counter
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

from passgate.core.config import Settings
from passgate.crud import pass_doc, payment
from passgate.db.store import DocumentStore, StoreError
from passgate.schemas.dashboard import DashboardMetrics
from passgate.utils.documents import utcnow

logger = logging.getLogger(__name__)


def venue_day_bounds(now: datetime, tz: ZoneInfo, days_ago: int = 0) -> Tuple[datetime, datetime]:
    """[start, end) in UTC of the venue-local calendar day containing now, shifted back days_ago."""
    local_date = now.astimezone(tz).date() - timedelta(days=days_ago)
    start = datetime.combine(local_date, time.min, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(local_date + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
    return start, end


class DashboardMetricsService:
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

    async def compute(self) -> DashboardMetrics:
        metrics = DashboardMetrics()
        try:
            metrics.totalSuccessfulRegistrations = await payment.count_by_status(self.store, status="success")
        except StoreError as e:
            logger.warning(f"totalSuccessfulRegistrations unavailable: {e}")
        try:
            metrics.registrationsToday = await self.successful_registrations_on_day(days_ago=0)
        except StoreError as e:
            logger.warning(f"registrationsToday unavailable: {e}")
        try:
            per_type = await self.registrations_per_pass_type()
            metrics.registrationsPerPassType = per_type or None
        except StoreError as e:
            logger.warning(f"registrationsPerPassType unavailable: {e}")
        return metrics

    async def successful_registrations_on_day(self, days_ago: int = 0) -> int:
        """Passes created on a venue-local day whose payment succeeded."""
        start, end = venue_day_bounds(self._now(), self.tz, days_ago=days_ago)
        passes = await pass_doc.created_between(
            self.store, start=start, end=end, limit=self.settings.METRICS_DAY_SCAN_LIMIT
        )
        payment_ids = [p.get("paymentId") for p in passes if isinstance(p.get("paymentId"), str)]
        payments = await payment.get_many(self.store, payment_ids)
        return sum(1 for p in payments.values() if p.get("status") == "success")

    async def registrations_per_pass_type(self) -> Dict[str, int]:
        successful = await payment.get_by_status(
            self.store, status="success", limit=self.settings.METRICS_SCAN_LIMIT
        )
        counts = Counter(
            p.get("passType") if isinstance(p.get("passType"), str) else "unknown"
            for p in successful
        )
        return dict(counts)
