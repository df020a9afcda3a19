"""
Dashboard query planner.

The store cannot combine filters, sorting and pagination without composite
indexes, so every dashboard read follows the same plan:

    1. scan a bounded window of passes (no server-side predicate)
    2. apply all filters in memory
    3. sort by createdAt, newest first
    4. slice the requested page (or the page after a cursor)
    5. join the page through EntityResolver, dropping unpaid passes
    6. apply the free-text search
    7. financial mode only: re-scan a wider window for the revenue total

The revenue pass reads the store independently of the page, so under
concurrent writes the two can disagree slightly. Revenue is advisory.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from passgate.core.config import Settings
from passgate.core.exceptions import ValidationError
from passgate.crud import pass_doc, payment
from passgate.db.store import DocumentStore
from passgate.schemas.dashboard import DashboardMetrics
from passgate.services.reporting.entity_resolver import (
    EntityResolver,
    HydratedPass,
    amount_of,
    event_ids_for_pass,
)
from passgate.services.reporting.metrics import DashboardMetricsService
from passgate.utils.documents import created_at_millis, str_list, to_datetime, utcnow

logger = logging.getLogger(__name__)


def clamp_int(raw: Optional[str], fallback: int, minimum: int, maximum: int) -> int:
    """Parse an int query parameter, clamped; anything unparsable gives the fallback."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return fallback
    return min(max(value, minimum), maximum)


def _clean(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def parse_bound(raw: Optional[str], name: str, end_of_day: bool = False) -> Optional[datetime]:
    """Parse a from/to bound. A bare date as an upper bound covers the whole day."""
    value = _clean(raw)
    if value is None:
        return None
    parsed = to_datetime(value)
    if parsed is None:
        raise ValidationError(f"Invalid date for '{name}': {value}", field=name)
    is_bare_date = len(value) == 10 and "T" not in value
    if end_of_day and is_bare_date:
        parsed = datetime.combine(parsed.date(), time.max, tzinfo=timezone.utc)
    return parsed


def requested_mode(params: Mapping[str, Any]) -> str:
    """"financial" only when asked for explicitly, otherwise "operations"."""
    mode = (_clean(params.get("mode")) or "").lower()
    return "financial" if mode == "financial" else "operations"


@dataclass
class DashboardQuery:
    mode: str = "operations"
    format: str = "json"
    page: int = 1
    page_size: int = 50
    cursor: Optional[str] = None
    pass_type: Optional[str] = None
    event_id: Optional[str] = None
    event_category: Optional[str] = None
    event_type: Optional[str] = None
    q: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    include_metrics: bool = True
    include_archived: bool = False

    @property
    def is_csv(self) -> bool:
        return self.format == "csv"

    @property
    def is_financial(self) -> bool:
        return self.mode == "financial"

    @classmethod
    def from_params(cls, params: Mapping[str, Any], settings: Settings) -> "DashboardQuery":
        """Build a query from raw request parameters, applying defaults and caps."""
        fmt = "csv" if _clean(params.get("format")) == "csv" else "json"
        if fmt == "csv":
            page_size = clamp_int(params.get("pageSize"), settings.EXPORT_PAGE_SIZE, 1, settings.EXPORT_MAX_PAGE_SIZE)
        else:
            page_size = clamp_int(params.get("pageSize"), settings.DASHBOARD_PAGE_SIZE, 1, settings.DASHBOARD_MAX_PAGE_SIZE)
        q = _clean(params.get("q"))
        return cls(
            mode=requested_mode(params),
            format=fmt,
            page=clamp_int(params.get("page"), 1, 1, settings.MAX_PAGE),
            page_size=page_size,
            cursor=_clean(params.get("cursor")),
            pass_type=_clean(params.get("passType")),
            event_id=_clean(params.get("eventId")),
            event_category=_clean(params.get("eventCategory")),
            event_type=_clean(params.get("eventType")),
            q=q.lower() if q else None,
            date_from=parse_bound(params.get("from"), "from"),
            date_to=parse_bound(params.get("to"), "to", end_of_day=True),
            include_metrics=params.get("includeMetrics") != "0",
            include_archived=params.get("includeArchived") == "1",
        )

    def matches(self, doc: Dict[str, Any]) -> bool:
        """In-memory filter predicate over a raw pass document."""
        if not self.include_archived and doc.get("isArchived") is True:
            return False
        if self.pass_type and doc.get("passType") != self.pass_type:
            return False
        if self.event_id:
            linked = set(str_list(doc.get("selectedEvents"))) | set(event_ids_for_pass(doc))
            if self.event_id not in linked:
                return False
        if self.event_category and doc.get("eventCategory") != self.event_category:
            return False
        if self.event_type and doc.get("eventType") != self.event_type:
            return False
        if self.date_from or self.date_to:
            created = to_datetime(doc.get("createdAt"))
            # Undated legacy passes are not excluded by a date range
            if created is not None:
                if self.date_from and created < self.date_from:
                    return False
                if self.date_to and created > self.date_to:
                    return False
        return True


@dataclass
class DashboardResult:
    records: List[HydratedPass]
    page: int
    page_size: int
    next_cursor: Optional[str]
    total_filtered: int
    metrics: Optional[DashboardMetrics] = None
    total_revenue: Optional[float] = None


class DashboardPlanner:
    def __init__(
        self,
        store: DocumentStore,
        settings: Settings,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.settings = settings
        self.resolver = EntityResolver(store)
        self.metrics = DashboardMetricsService(store, settings, now=now or utcnow)

    async def run(self, query: DashboardQuery) -> DashboardResult:
        if query.is_financial:
            (page_docs, total, next_cursor), revenue = await asyncio.gather(
                self._select_page(query),
                self.total_revenue(query),
            )
        else:
            page_docs, total, next_cursor = await self._select_page(query)
            revenue = None

        records = await self.resolver.resolve(page_docs)
        if query.q:
            records = [r for r in records if query.q in f"{r.name} {r.email}".lower()]

        metrics = await self.metrics.compute() if query.include_metrics else None

        return DashboardResult(
            records=records,
            page=1 if query.cursor else query.page,
            page_size=query.page_size,
            next_cursor=next_cursor,
            total_filtered=total,
            metrics=metrics,
            total_revenue=revenue,
        )

    async def filtered_passes(self, query: DashboardQuery, limit: int) -> List[Dict[str, Any]]:
        window = await pass_doc.scan(self.store, limit=limit)
        return [doc for doc in window if query.matches(doc)]

    async def _select_page(self, query: DashboardQuery):
        docs = await self.filtered_passes(query, self.settings.DASHBOARD_SCAN_LIMIT)
        # Ties on createdAt break by id so page boundaries are stable
        docs.sort(key=lambda d: d["id"])
        docs.sort(key=created_at_millis, reverse=True)

        total = len(docs)
        if query.cursor:
            start = next((i + 1 for i, d in enumerate(docs) if d["id"] == query.cursor), 0)
        else:
            start = (query.page - 1) * query.page_size
        end = start + query.page_size
        sliced = docs[start:end]

        has_next = total > end
        next_cursor = sliced[-1]["id"] if has_next and sliced else None
        return sliced, total, next_cursor

    async def total_revenue(self, query: DashboardQuery) -> float:
        """Sum of successful payment amounts across the whole filtered set."""
        docs = await self.filtered_passes(query, self.settings.REVENUE_SCAN_LIMIT)
        payment_ids = [d.get("paymentId") for d in docs if isinstance(d.get("paymentId"), str)]
        payments = await payment.get_many(self.store, payment_ids)
        return sum(
            amount_of(p) for p in payments.values() if p.get("status") == "success"
        )

