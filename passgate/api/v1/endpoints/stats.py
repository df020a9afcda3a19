# passgate/api/v1/endpoints/stats.py
from fastapi import APIRouter, Depends

from passgate.api import deps
from passgate.core.config import Settings, get_settings
from passgate.db.store import DocumentStore
from passgate.schemas.token import AdminContext
from passgate.services.reporting.stats import OverviewStats, OverviewStatsService

router = APIRouter(tags=["Stats"])


@router.get("/admin/stats", response_model=OverviewStats)
async def overview_stats(
    store: DocumentStore = Depends(deps.get_store),
    settings: Settings = Depends(get_settings),
    admin: AdminContext = Depends(deps.get_current_admin),
):
    return await OverviewStatsService(store, settings).compute()
