# passgate/api/v1/endpoints/audit_logs.py
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

from passgate.api import deps
from passgate.core.config import Settings, get_settings
from passgate.crud import audit_log
from passgate.db.store import DocumentStore
from passgate.schemas.token import AdminContext
from passgate.services.reporting.dashboard import clamp_int

router = APIRouter(tags=["Audit Logs"])


@router.get("/admin/audit-logs")
async def list_audit_logs(
    request: Request,
    store: DocumentStore = Depends(deps.get_store),
    settings: Settings = Depends(get_settings),
    admin: AdminContext = Depends(deps.get_current_admin),
) -> Dict[str, List[Dict[str, Any]]]:
    """Most recent admin actions, newest first."""
    limit = clamp_int(
        request.query_params.get("limit"),
        settings.AUDIT_LOG_DEFAULT_LIMIT,
        1,
        settings.AUDIT_LOG_MAX_LIMIT,
    )
    logs = await audit_log.get_recent(store, limit=limit)
    return {"logs": logs}
