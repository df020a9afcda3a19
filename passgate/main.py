# passgate/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from passgate.api.v1.api import api_router
from passgate.api.v1.endpoints import health
from passgate.core.config import settings
from passgate.core.limiter import limiter
from passgate.db.session import close_store, init_store
from passgate.middleware.error_handler import register_exception_handlers

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Passgate starting up (env={settings.ENV}, store={settings.STORE_BACKEND})")
    store = await init_store(settings)
    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is empty; every admin request will be rejected")
    if not settings.QR_SECRET_KEY:
        logger.warning("QR_SECRET_KEY is empty; every scanned token will be rejected")
    yield
    logger.info("Passgate shutting down...")
    await close_store(store)


app = FastAPI(
    title="Passgate Festival Pass Service",
    version="1.0.0",
    description="""
        **Passgate** issues, verifies and administers festival passes.

        ## Features

        * **Check-in**: Verify signed QR tokens at the gate
        * **Pass Management**: Mark passes used, revert, archive, re-issue QR codes
        * **Unified Dashboard**: Filtered, paginated registrations with CSV export
        * **Bulk Actions**: Apply one action to many passes, teams, payments or events
        * **On-spot Desk**: Register walk-ins paying by cash or UPI

        ## Authentication

        Every `/admin` endpoint requires an organizer JWT via the `Authorization: Bearer <token>` header.
        """,
    lifespan=lifespan,
)

# Add rate limiter state to app
app.state.limiter = limiter

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")
app.include_router(health.router)


@app.get("/")
def read_root():
    return {"status": "Passgate is running"}
