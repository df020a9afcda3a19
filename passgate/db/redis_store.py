# passgate/db/redis_store.py
"""
Redis-backed document store.

Each collection is one hash at "{prefix}:{collection}" mapping document id
to a JSON-encoded document. Datetimes are tagged so they round-trip.
"""

import json
import logging
from datetime import datetime
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from passgate.db.store import DocumentStore, StoreError

logger = logging.getLogger(__name__)

_DATETIME_TAG = "__datetime__"


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, dict):
        return {k: _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and _DATETIME_TAG in value:
            return datetime.fromisoformat(value[_DATETIME_TAG])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


def dumps(doc: Dict[str, Any]) -> str:
    return json.dumps(_encode(doc))


def loads(raw: str) -> Dict[str, Any]:
    return _decode(json.loads(raw))


class RedisDocumentStore(DocumentStore):
    """Document store on top of redis.asyncio hashes."""

    def __init__(self, client: redis.Redis, prefix: str = "passgate", **kwargs):
        super().__init__(**kwargs)
        self._client = client
        self.prefix = prefix

    @classmethod
    async def connect(cls, url: str, prefix: str = "passgate", **kwargs) -> "RedisDocumentStore":
        """Connect to Redis and verify the connection"""
        try:
            client = redis.from_url(url, encoding="utf-8", decode_responses=True)
            await client.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise StoreError(f"Redis unavailable: {e}") from e
        logger.info("Connected to Redis document store")
        return cls(client, prefix=prefix, **kwargs)

    def _key(self, collection: str) -> str:
        return f"{self.prefix}:{collection}"

    async def _read(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self._client.hget(self._key(collection), doc_id)
        except RedisError as e:
            raise StoreError(f"Redis read failed for {collection}/{doc_id}: {e}") from e
        return loads(raw) if raw is not None else None

    async def _write(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        try:
            await self._client.hset(self._key(collection), doc_id, dumps(data))
        except RedisError as e:
            raise StoreError(f"Redis write failed for {collection}/{doc_id}: {e}") from e

    async def _remove(self, collection: str, doc_id: str) -> bool:
        try:
            return bool(await self._client.hdel(self._key(collection), doc_id))
        except RedisError as e:
            raise StoreError(f"Redis delete failed for {collection}/{doc_id}: {e}") from e

    async def _iterate(self, collection: str) -> AsyncIterator[Tuple[str, Dict[str, Any]]]:
        try:
            async for doc_id, raw in self._client.hscan_iter(self._key(collection)):
                yield doc_id, loads(raw)
        except RedisError as e:
            raise StoreError(f"Redis scan failed for {collection}: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Disconnected from Redis")
