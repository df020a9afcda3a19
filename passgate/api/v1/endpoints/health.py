# passgate/api/v1/endpoints/health.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from passgate.api import deps
from passgate.db.store import DocumentStore, StoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(store: DocumentStore = Depends(deps.get_store)):
    try:
        reachable = await store.ping()
    except StoreError as e:
        logger.error(f"Health check failed: {e}")
        reachable = False
    if not reachable:
        return JSONResponse(status_code=503, content={"status": "unhealthy", "store": "unreachable"})
    return {"status": "healthy", "store": "ok"}
