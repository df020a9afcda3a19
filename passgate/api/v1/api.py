# passgate/api/v1/api.py

from fastapi import APIRouter
from passgate.api.v1.endpoints import (
    audit_logs,
    bulk_actions,
    check_in,
    dashboard,
    events,
    onspot,
    passes,
    payments,
    stats,
    teams,
    users,
)

# Every admin route of the v1 API, mounted under /api/v1 in main.py.
api_router = APIRouter()

api_router.include_router(check_in.router)
api_router.include_router(passes.router)
api_router.include_router(dashboard.router)
api_router.include_router(bulk_actions.router)
api_router.include_router(payments.router)
api_router.include_router(users.router)
api_router.include_router(events.router)
api_router.include_router(teams.router)
api_router.include_router(onspot.router)
api_router.include_router(audit_logs.router)
api_router.include_router(stats.router)
