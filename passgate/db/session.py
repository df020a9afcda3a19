# passgate/db/session.py
import logging

from passgate.core.config import Settings
from passgate.db.memory import InMemoryDocumentStore
from passgate.db.redis_store import RedisDocumentStore
from passgate.db.store import DocumentStore, set_store

logger = logging.getLogger(__name__)

# Composite indexes the deployed store declares: (collection, filter field, order field)
COMPOSITE_INDEXES = (
    ("payments", "status", "createdAt"),
)


async def init_store(settings: Settings) -> DocumentStore:
    """Build the configured store and register it for get_store()."""
    if settings.STORE_BACKEND == "redis":
        store = await RedisDocumentStore.connect(
            settings.REDIS_URL,
            prefix=settings.STORE_KEY_PREFIX,
            batch_size=settings.JOIN_BATCH_SIZE,
            composite_indexes=COMPOSITE_INDEXES,
        )
    else:
        logger.warning("Using in-memory document store; data is lost on restart")
        store = InMemoryDocumentStore(
            batch_size=settings.JOIN_BATCH_SIZE,
            composite_indexes=COMPOSITE_INDEXES,
        )
    set_store(store)
    return store


async def close_store(store: DocumentStore) -> None:
    await store.close()
    set_store(None)
