# passgate/api/v1/endpoints/dashboard.py
import logging
from io import BytesIO
from typing import List

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from passgate.api import deps
from passgate.core import admin_roles
from passgate.core.config import Settings, get_settings, settings as app_settings
from passgate.core.exceptions import ForbiddenError
from passgate.core.limiter import admin_or_remote_address, export_limiter, limiter
from passgate.db.store import DocumentStore
from passgate.schemas.dashboard import (
    FinancialDashboardResponse,
    FinancialRecord,
    OperationsDashboardResponse,
    OperationsRecord,
    RevenueSummary,
)
from passgate.schemas.token import AdminContext
from passgate.services.reporting.csv_export import FILENAMES, render_csv
from passgate.services.reporting.dashboard import (
    DashboardPlanner,
    DashboardQuery,
    DashboardResult,
    requested_mode,
)
from passgate.services.reporting.entity_resolver import HydratedPass

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Dashboard"])


def _operations_record(record: HydratedPass) -> OperationsRecord:
    return OperationsRecord(
        passId=record.pass_id,
        name=record.name,
        email=record.email,
        college=record.college,
        phone=record.phone,
        eventName=record.event_name,
        passType=record.pass_type,
        createdAt=record.created_at,
        eventCategory=record.event_category,
        eventType=record.event_type,
    )


def _financial_record(record: HydratedPass) -> FinancialRecord:
    return FinancialRecord(
        userId=record.user_id,
        passId=record.pass_id,
        paymentId=record.payment_id,
        name=record.name,
        email=record.email,
        college=record.college,
        phone=record.phone,
        eventName=record.event_name,
        passType=record.pass_type,
        amount=record.amount,
        paymentStatus=record.payment_status,
        orderId=record.order_id,
        createdAt=record.created_at,
        eventCategory=record.event_category,
        eventType=record.event_type,
    )


def _json_response(query: DashboardQuery, result: DashboardResult):
    if query.is_financial:
        records: List[FinancialRecord] = [_financial_record(r) for r in result.records]
        return FinancialDashboardResponse(
            records=records,
            page=result.page,
            pageSize=result.page_size,
            nextCursor=result.next_cursor,
            metrics=result.metrics,
            summary=RevenueSummary(totalRevenue=result.total_revenue or 0),
        )
    return OperationsDashboardResponse(
        records=[_operations_record(r) for r in result.records],
        page=result.page,
        pageSize=result.page_size,
        nextCursor=result.next_cursor,
        metrics=result.metrics,
    )


@router.get("/admin/unified-dashboard")
@limiter.limit(app_settings.RATE_LIMIT_DASHBOARD)
async def unified_dashboard(
    request: Request,  # Required for rate limiter
    store: DocumentStore = Depends(deps.get_store),
    settings: Settings = Depends(get_settings),
    admin: AdminContext = Depends(deps.get_current_admin),
):
    """Paginated, filtered registration list.

    `mode=financial` adds payment columns and the revenue summary and is
    restricted to superadmins. `format=csv` streams the same page as a CSV
    attachment and counts against the export limit.
    """
    if requested_mode(request.query_params) == "financial" and not admin_roles.can_view_financials(admin.role):
        raise ForbiddenError("Forbidden: Financial access requires superadmin")
    query = DashboardQuery.from_params(request.query_params, settings)
    if query.is_csv:
        export_limiter.check(admin_or_remote_address(request))
        # Exports never need the metrics block
        query.include_metrics = False

    result = await DashboardPlanner(store, settings).run(query)
    logger.info(
        f"Dashboard {query.mode}/{query.format} for admin {admin.user_id}: "
        f"{len(result.records)} records of {result.total_filtered} filtered"
    )

    if query.is_csv:
        output = BytesIO(render_csv(result.records, query.mode))
        return StreamingResponse(
            output,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{FILENAMES[query.mode]}"'},
        )
    return _json_response(query, result)
