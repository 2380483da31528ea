"""KeyValueStore against fakeredis, including simulated outages.

Learn: fakeredis runs real Redis semantics in memory, so TTLs, INCR,
and WATCH/MULTI behave as they would in production. A FakeServer with
connected=False raises ConnectionError on every command, which is how
the FAIL/DEGRADE policies are exercised.
"""

import pytest

from storefront.cache.store import RedisKeyValueStore, StoreErrorPolicy
from storefront.errors import StoreUnavailable


@pytest.mark.asyncio
async def test_set_and_get_json_values(store):
    await store.set("product:1", {"name": "Mug", "price": 9.5, "tags": ["kitchen"]})
    assert await store.get("product:1") == {"name": "Mug", "price": 9.5, "tags": ["kitchen"]}


@pytest.mark.asyncio
async def test_get_unset_key_returns_none(store):
    assert await store.get("nothing:here") is None


@pytest.mark.asyncio
async def test_get_unparseable_value_is_a_miss(store, redis_client):
    await redis_client.set("session:broken", "{not json")
    assert await store.get("session:broken") is None


@pytest.mark.asyncio
async def test_set_with_ttl_expires(store):
    await store.set("session:abc", {"step": 1}, ttl_seconds=120)
    remaining = await store.ttl("session:abc")
    assert 0 < remaining <= 120


@pytest.mark.asyncio
async def test_set_without_ttl_is_unbounded(store):
    await store.set("categories:all", [])
    assert await store.ttl("categories:all") == -1
    assert await store.exists("categories:all") is True


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [0, -5])
async def test_non_positive_ttl_is_rejected(store, ttl):
    with pytest.raises(ValueError):
        await store.set("session:zero", {"step": 1}, ttl_seconds=ttl)
    with pytest.raises(ValueError):
        await store.compare_and_set("refresh_token:u1", None, "t1", ttl_seconds=ttl)
    with pytest.raises(ValueError):
        await store.expire("session:zero", ttl)
    assert await store.exists("session:zero") is False
    assert await store.exists("refresh_token:u1") is False


@pytest.mark.asyncio
async def test_ttl_of_absent_key_is_minus_one(store):
    assert await store.ttl("missing") == -1


@pytest.mark.asyncio
async def test_expire_refreshes_ttl_without_rewriting(store):
    await store.set("cart:u1", {"items": [1]}, ttl_seconds=10)
    assert await store.expire("cart:u1", 500) is True
    assert await store.ttl("cart:u1") > 10
    assert await store.get("cart:u1") == {"items": [1]}


@pytest.mark.asyncio
async def test_expire_on_missing_key_is_false(store):
    assert await store.expire("cart:none", 60) is False


@pytest.mark.asyncio
async def test_delete_and_exists(store):
    await store.set("k", "v")
    assert await store.exists("k") is True
    await store.delete("k")
    assert await store.exists("k") is False
    await store.delete("k")  # deleting twice is fine


# ─── Rate-limit counters ───────────────────────────────


@pytest.mark.asyncio
async def test_counter_limits_after_limit_is_exceeded(store):
    results = [await store.increment_counter("rate_limit:api:1.2.3.4", 60, 5) for _ in range(7)]

    assert [r.count for r in results] == [1, 2, 3, 4, 5, 6, 7]
    assert [r.limited for r in results] == [False] * 5 + [True, True]
    assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0, 0]
    assert all(0 < r.reset_seconds <= 60 for r in results)


@pytest.mark.asyncio
async def test_counter_window_set_on_first_hit(store):
    await store.increment_counter("rate_limit:auth:ip", 30, 5)
    assert 0 < await store.ttl("rate_limit:auth:ip") <= 30


@pytest.mark.asyncio
async def test_counter_recovers_missing_window(store, redis_client):
    await redis_client.set("rate_limit:api:stuck", 3)  # no TTL
    result = await store.increment_counter("rate_limit:api:stuck", 60, 10)
    assert result.count == 4
    assert 0 < await store.ttl("rate_limit:api:stuck") <= 60


@pytest.mark.asyncio
async def test_counters_are_independent_per_key(store):
    for _ in range(3):
        await store.increment_counter("rate_limit:api:a", 60, 2)
    fresh = await store.increment_counter("rate_limit:api:b", 60, 2)
    assert fresh.count == 1
    assert fresh.limited is False


# ─── Compare-and-set ────────────────────────────────────


@pytest.mark.asyncio
async def test_compare_and_set_swaps_on_match(store):
    await store.set("refresh_token:u1", "t1")
    assert await store.compare_and_set("refresh_token:u1", "t1", "t2", ttl_seconds=60) is True
    assert await store.get("refresh_token:u1") == "t2"
    assert 0 < await store.ttl("refresh_token:u1") <= 60


@pytest.mark.asyncio
async def test_compare_and_set_refuses_on_mismatch(store):
    await store.set("refresh_token:u1", "t2")
    assert await store.compare_and_set("refresh_token:u1", "t1", "t3") is False
    assert await store.get("refresh_token:u1") == "t2"


# ─── Outage policies ────────────────────────────────────


@pytest.fixture()
def down_store(down_redis_client):
    return RedisKeyValueStore(down_redis_client)


@pytest.mark.asyncio
async def test_reads_degrade_when_store_is_down(down_store):
    assert await down_store.get("product:1") is None
    assert await down_store.exists("product:1") is False
    assert await down_store.ttl("product:1") == -1
    assert await down_store.ping() is False


@pytest.mark.asyncio
async def test_writes_fail_when_store_is_down(down_store):
    with pytest.raises(StoreUnavailable):
        await down_store.set("cart:u1", {"items": []})
    with pytest.raises(StoreUnavailable):
        await down_store.delete("refresh_token:u1")
    with pytest.raises(StoreUnavailable):
        await down_store.expire("session:s1", 60)
    with pytest.raises(StoreUnavailable):
        await down_store.compare_and_set("refresh_token:u1", "a", "b")


@pytest.mark.asyncio
async def test_policy_can_be_flipped_per_call(down_store):
    with pytest.raises(StoreUnavailable) as exc:
        await down_store.get("product:1", on_error=StoreErrorPolicy.FAIL)
    assert exc.value.operation == "get"
    assert exc.value.key == "product:1"

    await down_store.set("product:1", {}, on_error=StoreErrorPolicy.DEGRADE)


@pytest.mark.asyncio
async def test_counter_is_permissive_when_store_is_down(down_store):
    result = await down_store.increment_counter("rate_limit:api:ip", 60, 5)
    assert result.limited is False
    assert result.count == 0
    assert result.remaining == 5
    assert result.reset_seconds == 60
