"""
Tests for the Redis adapter against fakeredis.
"""

from datetime import datetime, timezone

import pytest
from fakeredis import aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from unittest.mock import AsyncMock

from passgate.db.redis_store import RedisDocumentStore, dumps, loads
from passgate.db.store import StoreError


@pytest.fixture
def redis_store():
    client = aioredis.FakeRedis(decode_responses=True)
    return RedisDocumentStore(client, prefix="test", batch_size=5)


def test_datetime_round_trip():
    moment = datetime(2026, 2, 10, 6, 0, tzinfo=timezone.utc)
    doc = {"createdAt": moment, "nested": {"at": [moment]}, "plain": "x"}
    assert loads(dumps(doc)) == doc


@pytest.mark.asyncio
async def test_set_get_update_delete(redis_store):
    moment = datetime(2026, 2, 10, 6, 0, tzinfo=timezone.utc)
    await redis_store.set("passes", "P1", {"status": "paid", "createdAt": moment})

    doc = await redis_store.get("passes", "P1")
    assert doc == {"id": "P1", "status": "paid", "createdAt": moment}

    merged = await redis_store.update("passes", "P1", {"status": "used"})
    assert merged["status"] == "used"
    assert merged["createdAt"] == moment

    assert await redis_store.delete("passes", "P1") is True
    assert await redis_store.get("passes", "P1") is None


@pytest.mark.asyncio
async def test_collections_are_hashes_under_prefix(redis_store):
    await redis_store.set("users", "U1", {"name": "A"})
    assert await redis_store._client.hexists("test:users", "U1")


@pytest.mark.asyncio
async def test_scan_query_count(redis_store):
    for i in range(6):
        await redis_store.set("payments", f"PAY{i}", {"status": "success" if i % 2 else "pending", "n": i})

    assert len(await redis_store.scan("payments", 4)) == 4
    success = await redis_store.query("payments", "status", "==", "success")
    assert sorted(d["id"] for d in success) == ["PAY1", "PAY3", "PAY5"]
    assert await redis_store.count("payments", field="n", op=">=", value=3) == 3

    found = await redis_store.get_many("payments", [f"PAY{i}" for i in range(8)])
    assert len(found) == 6


@pytest.mark.asyncio
async def test_ping(redis_store):
    assert await redis_store.ping() is True


@pytest.mark.asyncio
async def test_backend_errors_become_store_errors(redis_store):
    redis_store._client.hget = AsyncMock(side_effect=RedisConnectionError("down"))

    with pytest.raises(StoreError):
        await redis_store.get("passes", "P1")
